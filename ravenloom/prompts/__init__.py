# -*- coding: utf-8 -*-
"""
Prompt templates for entity extraction, atomic fact extraction and answer generation.
"""
