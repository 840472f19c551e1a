# gpxtools/visualize/plot.py
"""
Plotting routines for gpxtools
"""

from pathlib import Path

import matplotlib.pyplot as plt


def plot_speed(track, speeds, bad=None, out_path=None):
    """
    Scatter the track coloured by local window speed (km/h).

    `speeds` holds one value per point; None (unclassified) is drawn as NaN.
    Bad points are outlined in red. Saves to out_path if given, else shows.
    """
    lats = [p.lat for p in track.points]
    lons = [p.lon for p in track.points]
    values = [float("nan") if v is None else v for v in speeds]

    fig = plt.figure(figsize=(8,6))
    sc = plt.scatter(lons, lats, c=values, s=5, cmap="viridis")
    if any(v is not None for v in speeds):
        plt.colorbar(sc, label="Local speed (km/h)")
    if bad is not None and bad.points:
        plt.scatter([p.lon for p in bad.points], [p.lat for p in bad.points],
                    s=20, facecolors="none", edgecolors="red", label="bad")
        plt.legend()
    plt.xlabel("Longitude")
    plt.ylabel("Latitude")
    plt.title(f"{track.name or 'Track'} coloured by local speed")

    if out_path is None:
        plt.show()
    else:
        Path(out_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out_path)
    plt.close(fig)
