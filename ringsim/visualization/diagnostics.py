"""
Diagnostic plotting for orchestrated multi-ring runs
"""

import json
from typing import Dict, Iterable, List

import numpy as np
import matplotlib.pyplot as plt

from ..core.orchestrator import StepReport


class DiagnosticPlotter:
    """
    Plot conservation diagnostics recorded from orchestrator step reports
    """

    def __init__(self):
        """Initialize diagnostic plotter"""
        self.history: Dict[str, List[float]] = {
            'time': [],
            'energy': [],
            'energy_drift': [],
            'entropy_produced': [],
            'cumulative_entropy': []
        }
        self.ring_deltas: Dict[str, List[float]] = {}

    def update(self, report: StepReport):
        """
        Update diagnostic history with one step report

        Args:
            report: Report returned by CouplingOrchestrator.step
        """
        cumulative = self.history['cumulative_entropy']
        self.history['time'].append(report.time)
        self.history['energy'].append(report.energy_after)
        self.history['energy_drift'].append(report.energy_drift)
        self.history['entropy_produced'].append(report.entropy_produced)
        cumulative.append((cumulative[-1] if cumulative else 0.0) + report.entropy_produced)

        for ring_id, delta in report.ring_energy_deltas.items():
            self.ring_deltas.setdefault(ring_id, []).append(delta)

    def extend(self, reports: Iterable[StepReport]):
        for report in reports:
            self.update(report)

    def relative_energy_change(self) -> np.ndarray:
        energy = np.array(self.history['energy'])
        if len(energy) == 0 or energy[0] == 0:
            return np.zeros_like(energy)
        return (energy - energy[0]) / abs(energy[0])

    def plot_time_series(self) -> plt.Figure:
        """
        Plot time series of diagnostic quantities

        Returns:
            Figure object
        """
        fig, axes = plt.subplots(2, 2, figsize=(12, 8))
        axes = axes.flatten()

        t = np.array(self.history['time'])

        # Total energy
        ax = axes[0]
        ax.plot(t, self.history['energy'], 'b-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('Energy (J)')
        ax.set_title('Total Energy')
        ax.grid(True, alpha=0.3)

        # Per-step drift
        ax = axes[1]
        ax.plot(t, self.history['energy_drift'], 'r-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('ΔE per step (J)')
        ax.set_title('Energy Drift')
        ax.grid(True, alpha=0.3)

        # Entropy
        ax = axes[2]
        ax.plot(t, self.history['cumulative_entropy'], 'g-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('S produced (J/K)')
        ax.set_title('Cumulative Entropy Production')
        ax.grid(True, alpha=0.3)

        # Per-ring energy changes
        ax = axes[3]
        for ring_id, deltas in self.ring_deltas.items():
            ax.plot(t[:len(deltas)], deltas, linewidth=1.5, label=ring_id)
        ax.set_xlabel('Time')
        ax.set_ylabel('ΔE per step (J)')
        ax.set_title('Ring Energy Changes')
        if self.ring_deltas:
            ax.legend()
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        return fig

    def plot_conservation_check(self) -> plt.Figure:
        """
        Relative energy change over the run

        Returns:
            Figure object
        """
        fig, ax = plt.subplots(figsize=(10, 4))
        t = np.array(self.history['time'])
        ax.plot(t, self.relative_energy_change() * 100, 'b-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('Energy Change (%)')
        ax.set_title('Energy Conservation Check')
        ax.grid(True, alpha=0.3)
        plt.tight_layout()
        return fig

    def save_diagnostics(self, filename: str):
        """
        Save diagnostic data to file

        Args:
            filename: Output filename
        """
        data = {key: [float(v) for v in values] for key, values in self.history.items()}
        data['ring_deltas'] = {rid: [float(v) for v in values] for rid, values in self.ring_deltas.items()}
        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def load_diagnostics(self, filename: str):
        """
        Load diagnostic data from file

        Args:
            filename: Input filename
        """
        with open(filename, 'r') as f:
            data = json.load(f)
        self.ring_deltas = data.pop('ring_deltas', {})
        self.history = data
