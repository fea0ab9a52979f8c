"""
Failures raised by the listings pipeline.

All of them are fatal for a run; main.py catches PipelineError and exits 1.
"""


class PipelineError(Exception):
    """Base class for pipeline failures."""


class SourceUnavailable(PipelineError):
    """The source table could not be fetched or parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not load {source}: {reason}")


class SchemaMismatch(PipelineError):
    """Expected columns are missing or hold values of the wrong type."""

    def __init__(self, columns: list[str], message: str):
        self.columns = columns
        super().__init__(f"{message}: {columns}")


class EmptyResult(PipelineError):
    """The outlier filter removed every row."""

    def __init__(self, rows_in: int):
        self.rows_in = rows_in
        super().__init__(
            f"Outlier filters removed all {rows_in} rows; check the price/mileage bounds"
        )


class KeyIntegrityError(PipelineError):
    """CarSpecs and Pricing no longer match one-to-one on CarID."""


class ModelError(PipelineError):
    """The price model cannot be fitted on the cars that survived cleaning."""
