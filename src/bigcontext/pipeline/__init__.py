from bigcontext.pipeline.processor import MapReduceProcessor, clear_cache, process

__all__ = ["MapReduceProcessor", "clear_cache", "process"]
