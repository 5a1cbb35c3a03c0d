"""CSV export functionality for the pedestrian flow simulation."""

import csv
from pathlib import Path
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import SimulationState

AGENT_FIELDS = ['step', 'agent_id', 'x', 'y', 'target_id', 'distance_traveled']
STATISTICS_FIELDS = ['step_count', 'total_agents', 'avg_distance_traveled',
                     'max_congestion', 'avg_congestion']


class CSVWriter:
    """
    Exports simulation data to CSV incrementally, one or more rows per step.

    ``kind="agents"`` writes one row per agent:
        step,agent_id,x,y,target_id,distance_traveled
        1,agent-0,30.0,30.0,bin-1,28.284
        ...

    ``kind="statistics"`` writes one row per step with the engine statistics.
    """

    def __init__(self, output_path: Path, kind: str = "agents"):
        if kind not in ("agents", "statistics"):
            raise ValueError(f"Unknown CSV kind: {kind}")
        self.output_path = Path(output_path)
        self.kind = kind
        self.file = None
        self.writer: Optional[csv.DictWriter] = None

    @property
    def is_open(self) -> bool:
        return self.file is not None

    def open(self) -> None:
        """Create the file and write the header."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', newline='')
        fields = AGENT_FIELDS if self.kind == "agents" else STATISTICS_FIELDS
        self.writer = csv.DictWriter(self.file, fieldnames=fields)
        self.writer.writeheader()

    def _rows(self, state: "SimulationState") -> List[Dict]:
        if self.kind == "agents":
            return state.to_csv_rows()
        return [state.statistics.as_dict()]

    def append(self, state: "SimulationState") -> None:
        """Write the rows for one step."""
        if not self.is_open:
            self.open()
        self.writer.writerows(self._rows(state))
        self.file.flush()

    def close(self) -> None:
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
