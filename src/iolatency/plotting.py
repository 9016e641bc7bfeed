from .config import HEADLESS

import matplotlib
if HEADLESS:
    matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .histogram import HistogramSnapshot


class LivePlot:
    def __init__(self, headless=HEADLESS):
        self.headless = headless
        if not self.headless:
            plt.ion()
        self.fig = plt.figure(figsize=(10, 5))
        self.ax = self.fig.add_subplot(1, 1, 1)
        self.ax.set_xlabel("Latency (ms)")
        self.ax.set_ylabel("I/O")
        self.ax.set_title("Block I/O latency (last interval)")
        self.ax.grid(True, axis="y", alpha=0.3)
        self.fig.tight_layout()

    def update(self, snap: HistogramSnapshot, title=None):
        self.ax.clear()
        idx = np.arange(snap.max_index + 1)
        labels = [f"{lo}-{hi}" for lo, hi, _ in snap.rows()]
        self.ax.bar(idx, snap.counts, color="tab:blue")
        self.ax.set_xticks(idx)
        self.ax.set_xticklabels(labels, rotation=45, ha="right")
        self.ax.set_xlabel("Latency (ms)")
        self.ax.set_ylabel("I/O")
        self.ax.set_title(title or f"Block I/O latency (last interval, {snap.total} I/O)")
        self.ax.grid(True, axis="y", alpha=0.3)

        if not self.headless:
            self.fig.canvas.draw()
            self.fig.canvas.flush_events()
            plt.pause(0.001)

    def save(self, path: str):
        self.fig.savefig(path, dpi=140, bbox_inches="tight")

    def close(self):
        plt.close(self.fig)
