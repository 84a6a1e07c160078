from typing import Dict, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
plt.rcParams.update({'font.size': 14})
TITLE_FONTSIZE = 14


def create_profile_figure(
        statistics_dict: Dict[str, Dict[str, np.ndarray]],
        nrows_ncols: Tuple = None,
        index: int = -1,
        component: int = 0,
        save_fig: str = None,
        fig_args: Dict = {},
        dpi: int = 100
        ) -> Tuple[plt.Figure, List]:
    """Plots vertical profiles of ABL statistics,
    one subplot per field. The statistics are
    dictionaries as returned by load_abl_statistics.

    :param statistics_dict: Statistics per field name
    :type statistics_dict: Dict[str, Dict[str, np.ndarray]]
    :param nrows_ncols: Shape of subplots, defaults to one row
    :type nrows_ncols: Tuple, optional
    :param index: Index of the record to plot, defaults to -1
    :type index: int, optional
    :param component: Component of multi-component fields, defaults to 0
    :type component: int, optional
    :param save_fig: Path to save the figure, defaults to None
    :type save_fig: str, optional
    :param dpi: Resolution in dpi, defaults to 100
    :type dpi: int, optional
    :return: Figure and axes
    :rtype: Tuple[plt.Figure, List]
    """
    no_fields = len(statistics_dict)
    if nrows_ncols is None:
        nrows_ncols = (1, no_fields)

    fig, axes = plt.subplots(
        nrows=nrows_ncols[0], ncols=nrows_ncols[1],
        squeeze=False, sharey=True, **fig_args)
    axes = axes.flatten()

    for ax, (field, statistics) in zip(axes, statistics_dict.items()):
        values = statistics["values"][index]
        component_i = min(component, values.shape[-1] - 1)
        ax.plot(values[:,component_i], statistics["heights"], marker="o")
        ax.set_xlabel(field)
        ax.set_title(f"step {statistics['steps'][index]:d}", fontsize=TITLE_FONTSIZE)
        ax.grid(True)
    axes[0].set_ylabel("height")

    fig.tight_layout()
    if save_fig:
        fig.savefig(save_fig, dpi=dpi)
    return fig, axes

def create_friction_velocity_figure(
        statistics: Dict[str, np.ndarray],
        save_fig: str = None,
        dpi: int = 100
        ) -> Tuple[plt.Figure, plt.Axes]:
    """Plots the friction velocity over time."""
    fig, ax = plt.subplots()
    ax.plot(statistics["times"], statistics["utau"])
    ax.set_xlabel("time")
    ax.set_ylabel(r"$u_\tau$")
    ax.grid(True)
    fig.tight_layout()
    if save_fig:
        fig.savefig(save_fig, dpi=dpi)
    return fig, ax
