"""
Custom Exceptions
Automated analysis pipeline exceptions
"""


class AutomatedAnalysisError(Exception):
    """Base exception for the automated analysis pipeline"""
    
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)
    
    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RecordingSourceError(AutomatedAnalysisError):
    """Remote recording source call failed"""
    
    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class AuthenticationError(RecordingSourceError):
    """Remote session for the target is no longer authenticated"""
    pass


class ReportGenerationError(RecordingSourceError):
    """Analysis engine could not produce a report for a recording"""
    pass


class RecordingCreationError(RecordingSourceError):
    """Analysis recording could not be started"""
    pass


class RecordingExistsError(RecordingCreationError):
    """A recording with the reserved analysis name already exists"""
    pass


class StorageError(AutomatedAnalysisError):
    """Storage error"""
    pass


class CacheError(StorageError):
    """Report cache error"""
    pass
