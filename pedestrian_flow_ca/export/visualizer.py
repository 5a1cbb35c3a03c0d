"""Visualization and export for the pedestrian flow simulation."""

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgb
from pathlib import Path
from typing import List, Sequence, TYPE_CHECKING
from PIL import Image
import io

from ..model.nodes import NodeCategory

if TYPE_CHECKING:
    from ..model.grid import GridGeometry
    from ..model.nodes import Node
    from ..model.state import SimulationState


class Visualizer:
    """
    Generates visual outputs using matplotlib.

    Supports:
    - PNG snapshots (obstacles, nodes, agents, trail heatmap)
    - Congestion heatmaps
    - Animated GIF compilation

    Everything is drawn in world coordinates with y growing downwards,
    matching the venue map image.
    """

    # Color scheme
    COLORS = {
        'obstacle': '#2C3E50',  # Dark blue-gray
        'floor': '#ECF0F1',     # Light gray
        'trail': '#FF6400',     # Orange
        'agent': '#1E88E5',     # Blue
    }

    NODE_STYLES = {
        NodeCategory.ENTRY_EXIT: ('s', '#27AE60', 'Entry/Exit'),
        NodeCategory.BIN: ('^', '#8E44AD', 'Bin'),
        NodeCategory.VENDOR: ('D', '#F39C12', 'Vendor'),
    }

    def __init__(self, geometry: "GridGeometry",
                 obstacles: np.ndarray, nodes: Sequence["Node"]):
        self.geometry = geometry
        self.obstacles = obstacles
        self.nodes = list(nodes)
        self.frames: List[Image.Image] = []
        self.extent = [0, geometry.cols * geometry.cell_size,
                       geometry.rows * geometry.cell_size, 0]

    def _new_axes(self):
        aspect = self.geometry.cols / self.geometry.rows
        fig_height = 6
        fig_width = max(8, fig_height * aspect)
        return plt.subplots(figsize=(fig_width, fig_height))

    def _draw_nodes(self, ax) -> None:
        for category, (marker, color, label) in self.NODE_STYLES.items():
            members = [n for n in self.nodes if n.category is category]
            if not members:
                continue
            ax.plot([n.x for n in members], [n.y for n in members], marker,
                    color=color, markersize=9, markeredgecolor='black',
                    markeredgewidth=0.5, linestyle='none', label=label)

    def _create_figure(self, state: "SimulationState",
                       show_trail: bool = True,
                       show_agents: bool = True) -> plt.Figure:
        """Create matplotlib figure for state visualization."""
        fig, ax = self._new_axes()

        # Base layer: obstacles and floor
        base = np.ones(self.geometry.shape + (3,))
        base[:, :] = to_rgb(self.COLORS['floor'])
        base[self.obstacles] = to_rgb(self.COLORS['obstacle'])

        # Overlay trail heatmap
        peak = np.max(state.dynamic_field)
        if show_trail and peak > 0:
            intensity = np.minimum(state.dynamic_field / peak, 0.7)
            # Faint cells are left untinted
            intensity[intensity < 0.01] = 0.0
            trail_rgb = to_rgb(self.COLORS['trail'])
            for c in range(3):
                base[:, :, c] = np.clip(
                    base[:, :, c] * (1 - intensity) + trail_rgb[c] * intensity,
                    0, 1
                )

        ax.imshow(base, origin='upper', aspect='equal', extent=self.extent)

        self._draw_nodes(ax)

        if show_agents and state.agents:
            ax.plot([a.x for a in state.agents], [a.y for a in state.agents], 'o',
                    color=self.COLORS['agent'], markersize=4,
                    markeredgecolor='white', markeredgewidth=0.3,
                    linestyle='none', label='Agent')

        stats = state.statistics
        ax.set_title(f'Step {state.step} | Agents: {stats.total_agents} | '
                     f'Max congestion: {stats.max_congestion}')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_xlim(self.extent[0], self.extent[1])
        ax.set_ylim(self.extent[2], self.extent[3])
        ax.legend(loc='upper right', fontsize=8)

        plt.tight_layout()
        return fig

    def buffer_frame(self, state: "SimulationState") -> None:
        """Store frame for GIF generation."""
        fig = self._create_figure(state)

        # Convert to PIL Image
        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=80)
        buf.seek(0)
        img = Image.open(buf).copy()
        self.frames.append(img)
        buf.close()
        plt.close(fig)

    def save_snapshot(self, state: "SimulationState", output_path: Path) -> None:
        """Save single PNG image of current state."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig = self._create_figure(state)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    def save_congestion_heatmap(self, state: "SimulationState",
                                output_path: Path) -> None:
        """Save the cumulative visit counts as a heatmap with a colorbar."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig, ax = self._new_axes()

        counts = np.ma.masked_where(self.obstacles, state.congestion_map)
        cmap = matplotlib.colormaps['hot_r'].with_extremes(bad=self.COLORS['obstacle'])
        image = ax.imshow(counts, origin='upper', aspect='equal',
                          extent=self.extent, cmap=cmap)
        fig.colorbar(image, ax=ax, label='Visits')
        self._draw_nodes(ax)

        ax.set_title(f'Congestion after {state.step} steps')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.legend(loc='upper right', fontsize=8)

        plt.tight_layout()
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    def generate_gif(self, output_path: Path, fps: int = 10) -> None:
        """Compile buffered frames into animated GIF."""
        if not self.frames:
            return

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        duration = int(1000 / fps)  # milliseconds per frame

        self.frames[0].save(
            output_path,
            save_all=True,
            append_images=self.frames[1:],
            duration=duration,
            loop=0
        )

    def clear_frames(self) -> None:
        """Clear buffered frames."""
        self.frames.clear()
