# -*- coding: utf-8 -*-
"""Utilitários partilhados (sanitização de inputs)."""
