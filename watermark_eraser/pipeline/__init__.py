from .watermark_remover import log_processing_result, process_file, remove_watermarks

__all__ = ["remove_watermarks", "process_file", "log_processing_result"]
