"""
Word-level alignment between written content and timed transcriptions.

This package contains the modules that produce an alignment:
- types.py: Content/transcription tokens, alignment edges and results
- similarity.py: Multi-signal token-pair similarity scoring
- sequence_aligner.py: Strategy-parameterized dynamic-programming alignment
- matcher.py: Entry points for aligning, reviewing and applying alignments
"""
