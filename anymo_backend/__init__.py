"""
Anymo chat records backend.

A FastAPI service storing medical-consultation transcripts, enriching new
records with risk and sentiment scores from an ML service, and reformatting
raw transcripts with an LLM.
"""
