class AppError(Exception):
    """Base class for all application errors"""
    pass

class DataSourceError(AppError):
    """Reading from an external source failed (price feed, exchange rate feed)"""
    pass

class DataDestinationError(AppError):
    """Writing data failed (record store, export file)"""
    pass

class BusinessLogicError(AppError):
    """A domain rule was violated (e.g. closing a future that is not open)"""
    pass

class RecordFormatError(AppError):
    """A stored record could not be mapped to a domain model"""
    pass
