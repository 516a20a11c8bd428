"""
Extractor result type and registry.

Every strategy is a pure function over bundle text wrapped in an
extractor class. ``extract`` never raises: a strategy that finds
nothing returns a result carrying ``ParseNoResult``, one that blows up
returns a result carrying the exception.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Type

from ..utils.config import ExtractionTables
from ..utils.exceptions import ConfigError, ParseNoResult
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one strategy on one text: names, or why there are none."""
    strategy: str
    names: Tuple[str, ...] = ()
    failure: Optional[Exception] = None

    @property
    def found(self) -> bool:
        return bool(self.names)

    def __len__(self) -> int:
        return len(self.names)

    @classmethod
    def success(cls, strategy: str, names: Sequence[str]) -> "ExtractionResult":
        return cls(strategy=strategy, names=tuple(names))

    @classmethod
    def no_result(cls, strategy: str, reason: str = "no plausible list") -> "ExtractionResult":
        return cls(strategy=strategy, failure=ParseNoResult(strategy, reason))

    @classmethod
    def error(cls, strategy: str, exc: Exception) -> "ExtractionResult":
        return cls(strategy=strategy, failure=exc)


class BaseExtractor:
    """Base class: subclasses implement ``scan``."""

    name = "base"

    def __init__(self, tables: ExtractionTables):
        self.tables = tables

    def scan(self, text: str) -> Optional[List[str]]:
        """Return the mined names, or None when nothing plausible was found."""
        raise NotImplementedError

    def extract(self, text: str) -> ExtractionResult:
        try:
            names = self.scan(text)
        except Exception as e:
            logger.warning(f"{self.name} extractor failed: {e}", exc_info=True)
            return ExtractionResult.error(self.name, e)

        if not names:
            logger.debug(f"{self.name}: no result")
            return ExtractionResult.no_result(self.name)

        logger.debug(f"{self.name}: {len(names)} names")
        return ExtractionResult.success(self.name, names)


EXTRACTORS: Dict[str, Type[BaseExtractor]] = {}


def register(cls: Type[BaseExtractor]) -> Type[BaseExtractor]:
    EXTRACTORS[cls.name] = cls
    return cls


def create_extractor(name: str, tables: ExtractionTables) -> BaseExtractor:
    """
    Instantiate a registered extractor.

    Raises:
        ConfigError: If no extractor has that name
    """
    try:
        cls = EXTRACTORS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown extraction strategy: {name}",
            config_key="extraction.strategies",
            expected_type=" | ".join(sorted(EXTRACTORS)),
        ) from None
    return cls(tables)


def run_extractor(extractor: BaseExtractor, text: str) -> ExtractionResult:
    """Run an extractor, converting a stray exception into a failed result."""
    try:
        return extractor.extract(text)
    except Exception as e:
        logger.warning(f"{extractor.name} failed: {e}", exc_info=True)
        return ExtractionResult.error(extractor.name, e)
