"""Pairwise Pearson correlation between the numeric columns of a dataset."""

from dataclasses import dataclass
from typing import Self

import numpy as np
import pandas as pd

from tabcast.data.dataset import Dataset
from tabcast.data.utils import is_present

from .base_analyser import BaseAnalyser
from .stats_engine import StatsResult


MIN_PAIRED_OBSERVATIONS = 2

PAIR_COLUMNS = ["column_a", "column_b", "r", "abs_r", "n_obs"]


@dataclass(frozen=True)
class CorrelationResult:
    """Correlation matrix plus the tabular views built from it.

    Attributes:
        matrix: Square frame over the numeric columns in dataset order. Cells with fewer than
            two paired observations are NaN and the diagonal is exactly 1. The frame is empty
            when the dataset has fewer than two numeric columns.
        n_obs: Paired observation count behind each matrix cell.
        top_pairs: One row per defined pair with columns ``column_a``, ``column_b``, ``r``,
            ``abs_r`` and ``n_obs``, strongest ``abs_r`` first.
        target_correlations: ``column`` / ``r`` rows against the configured target, highest
            ``r`` first, or ``None`` when no target was configured.
    """

    matrix: pd.DataFrame
    n_obs: pd.DataFrame
    top_pairs: pd.DataFrame
    target_correlations: pd.DataFrame | None = None

    @property
    def is_empty(self) -> bool:
        """True when fewer than two numeric columns were available."""
        return self.matrix.empty

    def get(self, col_a: str, col_b: str) -> float | None:
        """Return the coefficient for a pair, or ``None`` when it is undefined.

        Raises:
            KeyError: If either column is not part of the matrix.
        """
        value = self.matrix.loc[col_a, col_b]
        return None if pd.isna(value) else float(value)


def pearson_from_sums(x: np.ndarray, y: np.ndarray) -> float:
    r"""Pearson coefficient from running sums.

    :math:`r = \frac{n\sum xy - \sum x \sum y}{\sqrt{(n\sum x^2 - (\sum x)^2)(n\sum y^2 - (\sum y)^2)}}`

    The sums are taken over mean-centered values, which leaves ``r`` unchanged but keeps
    large offsets (prices in the millions, epoch timestamps) from cancelling. A zero
    denominator (a constant series) yields ``0.0`` by convention rather than NaN, and the
    result is clipped to ``[-1, 1]``.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0
    n = len(x)
    dx = x - x.mean()
    dy = y - y.mean()
    sum_x, sum_y = dx.sum(), dy.sum()
    numerator = n * (dx * dy).sum() - sum_x * sum_y
    variance_product = (n * (dx * dx).sum() - sum_x**2) * (n * (dy * dy).sum() - sum_y**2)
    if variance_product <= 0:
        return 0.0
    return float(np.clip(numerator / np.sqrt(variance_product), -1.0, 1.0))


class CorrelationAnalyzer(BaseAnalyser):
    """Analyzer for computing pairwise Pearson correlations between numeric columns.

    Each pair uses only the rows where *both* cells are present (pairwise deletion), so
    different entries of the matrix can rest on different row subsets.

    Example:
        >>> from tabcast.analysis import StatsAnalyzer
        >>> stats = StatsAnalyzer(ds).fit().result()
        >>> corr_res = CorrelationAnalyzer(ds, stats).fit().result()
        >>> corr_res.get("price", "quantity")
    """

    def __init__(self, dataset: Dataset, stats: StatsResult, target_col: str | None = None):
        """Initialize the correlation analyzer.

        Args:
            dataset: Dataset holding the values.
            stats: Column statistics of ``dataset``; only its numeric columns are correlated.
            target_col: Optional column for :meth:`get_target_correlations`.
        """
        self._dataset = dataset
        self._numeric_cols = [c for c in stats.numeric_cols if c in dataset.columns]
        self._target_col = target_col
        self._corr_mat: pd.DataFrame | None = None
        self._n_obs: pd.DataFrame | None = None

    def get_correlation_matrix(self) -> pd.DataFrame:
        """Compute the Pearson correlation matrix (upper triangle, mirrored)."""
        if self._corr_mat is not None:
            return self._corr_mat

        cols = self._numeric_cols
        if len(cols) < 2:  # noqa: PLR2004
            self._corr_mat = pd.DataFrame(dtype=float)
            self._n_obs = pd.DataFrame(dtype=int)
            return self._corr_mat

        frame = self._dataset.df.loc[:, cols]
        present = frame.map(is_present).astype(bool)
        corr = pd.DataFrame(np.nan, index=cols, columns=cols, dtype=float)
        n_obs = pd.DataFrame(0, index=cols, columns=cols, dtype=int)

        for i, col_a in enumerate(cols):
            corr.loc[col_a, col_a] = 1.0
            n_obs.loc[col_a, col_a] = int(present[col_a].sum())
            for col_b in cols[i + 1 :]:
                both = present[col_a] & present[col_b]
                n = int(both.sum())
                n_obs.loc[col_a, col_b] = n_obs.loc[col_b, col_a] = n
                if n < MIN_PAIRED_OBSERVATIONS:
                    continue
                x = frame.loc[both, col_a].astype(float).to_numpy()
                y = frame.loc[both, col_b].astype(float).to_numpy()
                corr.loc[col_a, col_b] = corr.loc[col_b, col_a] = pearson_from_sums(x, y)

        self._corr_mat = corr
        self._n_obs = n_obs
        return self._corr_mat

    def get_top_correlated_pairs(self, n: int = 20) -> pd.DataFrame:
        """Return up to ``n`` column pairs ordered by absolute correlation.

        Each unordered pair is listed once (upper triangle, diagonal excluded). Undefined pairs
        are skipped. Equal strengths keep matrix order.
        """
        matrix = self.get_correlation_matrix()
        n_obs = self._n_obs
        cols = list(matrix.columns)
        rows = [
            (a, b, matrix.at[a, b], int(n_obs.at[a, b]))
            for i, a in enumerate(cols)
            for b in cols[i + 1 :]
            if not np.isnan(matrix.at[a, b])
        ]
        if not rows:
            return pd.DataFrame(columns=PAIR_COLUMNS)

        pairs = pd.DataFrame(rows, columns=["column_a", "column_b", "r", "n_obs"])
        pairs["abs_r"] = pairs["r"].abs()
        return pairs.sort_values("abs_r", ascending=False, kind="stable").head(n).reset_index(drop=True)[PAIR_COLUMNS]

    def get_target_correlations(self) -> pd.DataFrame:
        """Correlate every other numeric column with the configured target.

        Returns:
            Frame with ``column`` and ``r``, highest ``r`` first; undefined pairs are dropped.

        Raises:
            ValueError: If no target is configured or the target is not a numeric column.
        """
        if not self._target_col:
            raise ValueError("No target column configured.")
        matrix = self.get_correlation_matrix()
        if self._target_col not in matrix.index:
            raise ValueError(f"Target column '{self._target_col}' is not a correlated numeric column")

        against_target = matrix.loc[self._target_col].drop(self._target_col).dropna()
        frame = pd.DataFrame({"column": against_target.index, "r": against_target.to_numpy()})
        return frame.sort_values("r", ascending=False, kind="stable").reset_index(drop=True)

    def fit(self) -> Self:
        """Compute the correlation matrix."""
        self.get_correlation_matrix()
        return self

    def result(self, *, top_n_pairs: int = 20) -> CorrelationResult:
        """Package the matrix with its pair and target views.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        if self._corr_mat is None or self._n_obs is None:
            raise ValueError("Must call fit() before result()")

        has_target = bool(self._target_col) and self._target_col in self._corr_mat.index
        return CorrelationResult(
            matrix=self._corr_mat,
            n_obs=self._n_obs,
            top_pairs=self.get_top_correlated_pairs(n=top_n_pairs),
            target_correlations=self.get_target_correlations() if has_target else None,
        )


__all__ = ["MIN_PAIRED_OBSERVATIONS", "CorrelationAnalyzer", "CorrelationResult", "pearson_from_sums"]
