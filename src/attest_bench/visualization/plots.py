"""Matplotlib plots of benchmark reports."""

from __future__ import annotations

import os

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend by default

import matplotlib.pyplot as plt
import numpy as np

from attest_bench.utils.types import BatchRow


class PlotSuite:
    """Cost and payload-size plots for one or more benchmark reports."""

    def __init__(self, save_dir: str = ".") -> None:
        self.save_dir = os.path.expanduser(save_dir)

    def _save_or_show(
        self, fig: plt.Figure, name: str, show: bool, save: bool
    ) -> plt.Figure:
        if save:
            os.makedirs(self.save_dir, exist_ok=True)
            path = os.path.join(self.save_dir, f"attest_{name}.png")
            fig.savefig(path, dpi=150, bbox_inches="tight")
        if show:
            plt.show()
        else:
            plt.close(fig)
        return fig

    def cost_vs_count(
        self,
        reports: dict[str, list[BatchRow]],
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Average verification cost per group size, one line per report."""
        fig, ax = plt.subplots(figsize=(10, 6))
        if not any(reports.values()):
            ax.text(0.5, 0.5, "No data", ha="center", va="center")
            return self._save_or_show(fig, "cost_vs_count", show, save)

        for label, rows in reports.items():
            if not rows:
                continue
            counts = np.array([r.count for r in rows])
            costs = np.array([r.avg_cost for r in rows])
            ax.plot(counts, costs, marker="o", label=label)

        ax.set_xlabel("Runs in group")
        ax.set_ylabel("Average gas")
        ax.set_title("Verification Cost by Group Size")
        ax.legend()
        ax.grid(True, alpha=0.3)
        return self._save_or_show(fig, "cost_vs_count", show, save)

    def payload_sizes(
        self,
        reports: dict[str, list[BatchRow]],
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Representative calldata size per report as a bar chart."""
        labels = [label for label, rows in reports.items() if rows]
        sizes = [reports[label][0].payload_bytes for label in labels]

        fig, ax = plt.subplots(figsize=(8, 5))
        if not labels:
            ax.text(0.5, 0.5, "No data", ha="center", va="center")
            return self._save_or_show(fig, "payload_sizes", show, save)

        ax.bar(range(len(labels)), sizes, color="#3498db")
        ax.set_xticks(range(len(labels)))
        ax.set_xticklabels(labels, rotation=20, ha="right")
        ax.set_ylabel("Calldata bytes")
        ax.set_title("Representative Payload Size")
        ax.grid(True, axis="y", alpha=0.3)
        fig.tight_layout()
        return self._save_or_show(fig, "payload_sizes", show, save)
