from typing import Any, Callable, Dict, Hashable, List, Optional

import pandas as pd

from ..models import PaginatedCollection


def _as_dict(record: Dict[str, Any]) -> Any:
    return record


class FrameDataSource:
    """Read-only source over a pandas DataFrame, one row per value.

    Rows keep the frame's order, which is also the paging order.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        key_column: str,
        to_value: Callable[[Dict[str, Any]], Any] = _as_dict,
        name: Optional[str] = None,
    ) -> None:
        if key_column not in frame.columns:
            raise ValueError(f"key column {key_column!r} not in frame")
        self.frame = frame.reset_index(drop=True)
        self.key_column = key_column
        self.to_value = to_value
        self.name = name or "frame"

    def _values(self, frame: pd.DataFrame) -> List[Any]:
        return [self.to_value(record) for record in frame.to_dict(orient="records")]

    def get(self, key: Hashable) -> Optional[Any]:
        rows = self.frame[self.frame[self.key_column] == key]
        if rows.empty:
            return None
        return self._values(rows.head(1))[0]

    def get_all(self) -> List[Any]:
        return self._values(self.frame)

    def get_page(self, offset: int, limit: int) -> PaginatedCollection[Any]:
        window = self.frame.iloc[offset:offset + limit]
        return PaginatedCollection(
            items=self._values(window),
            offset=offset,
            limit=limit,
            has_more=offset + limit < len(self.frame),
        )
