"""Common protocol for the tabcast engines."""

from abc import ABC, abstractmethod
from typing import Any


class BaseAnalyser(ABC):
    """Abstract base class for the analysis engines.

    Every engine is configured in its constructor, computes in :meth:`fit` and hands back an
    immutable result from :meth:`result`:

    ```python
    stats = StatsAnalyzer(ds).fit().result()
    corr = CorrelationAnalyzer(ds, stats).fit().result()
    cleaned = DataCleaner(ds, "price", method="median", stats=stats).fit().result().dataset
    ```

    Contract for subclasses:

    - The constructor only stores arguments; it never validates or computes.
    - ``fit()`` checks column selections and options first and raises a
      :class:`~tabcast.errors.TabcastError` subclass before doing any work, then returns ``self``.
    - ``result()`` returns a frozen dataclass and raises ``ValueError`` when ``fit()`` was not
      called.
    - The input :class:`~tabcast.data.Dataset` is never modified. Engines that transform data
      put a new dataset into their result.
    - Upstream results (usually a :class:`~tabcast.analysis.stats_engine.StatsResult`) are passed
      in explicitly rather than recomputed, so the numeric/categorical split stays consistent.
    """

    @abstractmethod
    def fit(self) -> "BaseAnalyser":
        """Run the computation.

        Returns:
            Self for method chaining.
        """
        ...

    @abstractmethod
    def result(self) -> Any:
        """Return the computed result.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        ...
