from .background import BackgroundWorker, Pooled, Synchronous, select_strategy

__all__ = ["BackgroundWorker", "Pooled", "Synchronous", "select_strategy"]
