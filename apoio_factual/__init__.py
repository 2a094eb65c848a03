# -*- coding: utf-8 -*-
"""
Apoio Factual - Package apoio_factual
Organização documental: dossiês, documentos, cronologia factual,
relatórios de lacunas e tesouraria pessoal.
"""

__version__ = "1.0.0"
