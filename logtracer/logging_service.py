import logging

INPUT_LOG_FORMAT = "[%s] args=%s"
OUTPUT_LOG_FORMAT = "[%s] out=%s"
ERROR_LOG_FORMAT = "[%s] error=%s"

default_logger = logging.getLogger("logtracer")


class LoggingService:
    """
    Writes the input/output/error records of an instrumented operation.

    Every record is tagged with the operation name, both in the message and
    in the ``operation`` / ``record_kind`` extra fields.
    """

    def log_input(self, operation_name: str, arguments: str, logger: logging.Logger = None):
        if not operation_name:
            return
        (logger or default_logger).info(
            INPUT_LOG_FORMAT,
            operation_name,
            arguments,
            extra={"operation": operation_name, "record_kind": "input"},
        )

    def log_output(self, operation_name: str, output: str, logger: logging.Logger = None):
        if not operation_name:
            return
        (logger or default_logger).info(
            OUTPUT_LOG_FORMAT,
            operation_name,
            output,
            extra={"operation": operation_name, "record_kind": "output"},
        )

    def log_error(self, operation_name: str, failure, logger: logging.Logger = None):
        if not operation_name or failure is None:
            return
        exc_info = failure if isinstance(failure, BaseException) else None
        (logger or default_logger).error(
            ERROR_LOG_FORMAT,
            operation_name,
            failure,
            exc_info=exc_info,
            extra={"operation": operation_name, "record_kind": "error"},
        )
