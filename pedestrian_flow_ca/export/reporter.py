"""Summary report generation for the pedestrian flow simulation."""

from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING
from pathlib import Path

if TYPE_CHECKING:
    from ..model.state import SimulationState, SimulationStatistics


class Reporter:
    """Generates summary statistics and formatted text report."""

    def __init__(self, config_path: str, seed: Optional[int]):
        self.config_path = config_path
        self.seed = seed
        self.history: List["SimulationStatistics"] = []
        self.peak_trail = 0.0
        self.peak_trail_step = 0
        self.stalled_steps = 0
        self._prev_distance = 0.0

    def update(self, state: "SimulationState") -> None:
        """Accumulate statistics per step."""
        stats = state.statistics
        self.history.append(stats)

        trail = float(state.dynamic_field.max()) if state.dynamic_field.size else 0.0
        if trail > self.peak_trail:
            self.peak_trail = trail
            self.peak_trail_step = state.step

        # A step in which nobody advanced (every agent boxed in)
        if stats.total_agents > 0 and stats.avg_distance_traveled == self._prev_distance:
            self.stalled_steps += 1
        self._prev_distance = stats.avg_distance_traveled

    def generate_summary(self, final_state: "SimulationState",
                         hotspots: Sequence[Tuple[Tuple[int, int], int]],
                         output_dir: Path,
                         csv_enabled: bool,
                         snapshot_enabled: bool,
                         heatmap_enabled: bool,
                         gif_enabled: bool) -> str:
        """Returns formatted text report."""
        stats = final_state.statistics

        lines = [
            "",
            "=" * 80,
            "                    PEDESTRIAN FLOW SIMULATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_path}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "SIMULATION METRICS",
            "-" * 40,
            f"Total Steps:            {stats.step_count}",
            f"Agents:                 {stats.total_agents}",
            f"Avg Distance Traveled:  {stats.avg_distance_traveled:.2f}",
            f"Max Congestion:         {stats.max_congestion} visits",
            f"Avg Congestion:         {stats.avg_congestion:.2f} visits/cell",
            f"Peak Trail Intensity:   {self.peak_trail:.2f} (step {self.peak_trail_step})",
            f"Stalled Steps:          {self.stalled_steps}",
            "",
            "CONGESTION HOTSPOTS (row, col)",
            "-" * 40,
        ]

        if hotspots:
            for rank, ((row, col), visits) in enumerate(hotspots, start=1):
                lines.append(f"{rank}. ({row}, {col}): {visits} visits")
        else:
            lines.append("(none recorded)")

        lines += [
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]

        # Output file paths
        if csv_enabled:
            lines.append(f"Agent Log:   {output_dir / 'agent_log.csv'}")
            lines.append(f"Stats Log:   {output_dir / 'statistics_log.csv'}")
        else:
            lines.append("CSV Logs:    (disabled)")

        if snapshot_enabled:
            lines.append(f"Snapshot:    {output_dir / 'final_state.png'}")
        else:
            lines.append("Snapshot:    (disabled)")

        if heatmap_enabled:
            lines.append(f"Heatmap:     {output_dir / 'congestion.png'}")
        else:
            lines.append("Heatmap:     (disabled)")

        if gif_enabled:
            lines.append(f"Animation:   {output_dir / 'simulation.gif'}")
        else:
            lines.append("Animation:   (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)
