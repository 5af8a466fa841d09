# Analyzers Package
from .disclosures import format_entry, format_status, format_watermark

__all__ = ['format_entry', 'format_status', 'format_watermark']
