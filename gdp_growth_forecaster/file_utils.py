# gdp_growth_forecaster/file_utils.py

import pandas as pd
from pathlib import Path
from typing import Mapping, Optional
import logging

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> None:
    """Create directory if it doesn't exist, including all parent directories."""
    path.mkdir(parents=True, exist_ok=True)


def resolve_path(path_str: str, base_dir: Path) -> Path:
    """
    Resolve a path string relative to a base directory if not absolute.

    Examples
    --------
    >>> resolve_path("data/file.csv", Path("/project"))
    PosixPath('/project/data/file.csv')
    >>> resolve_path("/absolute/path.csv", Path("/project"))
    PosixPath('/absolute/path.csv')
    """
    path = Path(path_str)
    return path if path.is_absolute() else (base_dir / path)


def write_results_csv(df: pd.DataFrame, csv_path: Optional[Path]) -> Optional[Path]:
    """
    Write the flattened forecast table to CSV, creating parent directories.

    Parameters
    ----------
    df : pd.DataFrame
        Output of pipeline.results_to_frame
    csv_path : Optional[Path]
        Destination (None to skip writing)

    Returns
    -------
    Optional[Path]
        The written path, or None when skipped
    """
    if csv_path is None:
        return None
    ensure_dir(csv_path.parent)
    df.to_csv(csv_path, index=False)
    logger.info("Wrote %d forecast rows to %s", len(df), csv_path)
    return csv_path


def write_grid_tables(results: Mapping[str, object], out_dir: Path) -> int:
    """
    Save each country's RMSE-ranked grid table as grid_{COUNTRY}.csv.

    Returns
    -------
    int
        Number of tables written
    """
    ensure_dir(out_dir)
    written = 0
    for country, res in results.items():
        selected = getattr(res, "selected", None)
        if selected is None:
            continue
        path = out_dir / f"grid_{country}.csv"
        selected.grid.to_csv(path, index=False)
        written += 1
    logger.info("Saved %d grid tables to %s", written, out_dir)
    return written
