import logging


class LoggingMixin:
    """
    Gives a class a `logger` named after it.
    """

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(self.__class__.__name__)
