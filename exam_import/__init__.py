"""
Exam Importer
=============
Turns exam definitions into validated-ready Exam aggregates.

Architecture:
    - Structured Decoder: JSON documents already in the exam schema
    - State Machine: plain-text grammar (Q:/A:/[x] lines) with type inference
    - Import Engine: routes documents to a decoder by media type
    - Import Report: summary of what an import produced
    - Import Service: validation, persistence and the rejected-import cache

Version: 1.0.0
"""

__version__ = "1.0.0"
