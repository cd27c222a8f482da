"""
Logging and error handling utilities shared by the pipeline.
"""
