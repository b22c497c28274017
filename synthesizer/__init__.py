"""
doc-synthesizer: multi-document synthesis through a hosted LLM.

Extracts text from PDF/DOCX files (pypdf, docling), composes one of three
prompt templates (narrative analysis, Mermaid diagram, comparison table) and
renders the model's reply as HTML.
"""

__version__ = "0.1.0"
