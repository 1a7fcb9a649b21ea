"""Exceptions raised for input the core refuses to process."""


class TradeDataError(ValueError):
    """Request-level input is malformed (missing selection, bad units, bad date)."""


class DatasetNotFoundError(TradeDataError):
    """A selected dataset has no trade file on disk."""

    def __init__(self, dataset_id: str):
        super().__init__(f"Dataset not found: {dataset_id}")
        self.dataset_id = dataset_id
