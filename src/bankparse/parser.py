"""Public entry point: statement text in, categorized transactions out."""

import logging
from typing import Dict, Iterable, List, Optional

from .categorization import Categorizer, LearningStore
from .models.core import (
    BankProfile,
    CategoryRule,
    ParserConfig,
    ParsingMetadata,
    ParsingResult,
    ProcessingStats,
)
from .parsers.bank_detector import BankRegistry
from .parsers.base import ExtractionContext
from .parsers.patterns import PatternConfigGenerator
from .parsers.text_parser import TextStatementParser
from .parsers.transformer import DataTransformer
from .utils.duplicate_detector import TransactionNormalizer
from .utils.error_handler import StatementParsingError


logger = logging.getLogger(__name__)


class StatementParser:
    """Runs bank detection, extraction, normalisation and categorization.

    Each instance owns its bank registry and learning store, so separate
    instances never influence each other. An instance is not thread-safe;
    use one per thread.
    """

    def __init__(self, config: Optional[ParserConfig] = None,
                 learning_store: Optional[LearningStore] = None):
        self.config = config or ParserConfig()
        self.registry = BankRegistry(self.config.bank_sample_size)
        self.pattern_generator = PatternConfigGenerator()
        self.transformer = DataTransformer(self.config)
        self.extractor = TextStatementParser(self.config, self.transformer)
        self.normalizer = TransactionNormalizer(self.config)
        self.learning_store = learning_store if learning_store is not None else LearningStore(
            self.config.learning_capacity, self.config.learning_eviction
        )
        self.categorizer = Categorizer(self.config, self.learning_store)

        for key, profile in self.config.custom_bank_profiles.items():
            self.registry.register_profile(key, profile)

    def register_bank_profile(self, key: str, profile) -> BankProfile:
        return self.registry.register_profile(key, profile)

    def parse_transactions(self, text: str, use_ml_features: bool = True,
                           custom_keyword_map: Optional[Dict[str, List[str]]] = None,
                           min_confidence_threshold: Optional[float] = None,
                           extra_rules: Optional[Iterable[CategoryRule]] = None) -> ParsingResult:
        """Extract and categorize every transaction in a redacted statement.

        Args:
            text: Newline-delimited statement text
            use_ml_features: Consult and update the learning store
            custom_keyword_map: {category name: [keywords]} checked before the rule table
            min_confidence_threshold: Candidate floor; defaults to the configured value
            extra_rules: Additional category rules merged with the built-in table for this call

        Returns:
            ParsingResult with transactions sorted by date and run metadata

        Raises:
            StatementParsingError: For non-text input or any failure inside the pipeline
        """
        if not isinstance(text, str):
            raise StatementParsingError(
                f"Enhanced universal transaction parsing failed: expected str, got {type(text).__name__}"
            )

        try:
            return self._parse(text, use_ml_features, custom_keyword_map,
                               min_confidence_threshold, extra_rules)
        except StatementParsingError:
            raise
        except Exception as e:
            logger.error(f"Statement parsing failed: {e}")
            raise StatementParsingError(f"Enhanced universal transaction parsing failed: {e}") from e

    def _parse(self, text, use_ml_features, custom_keyword_map,
               min_confidence_threshold, extra_rules) -> ParsingResult:
        config = self.config
        floor = config.min_confidence_threshold if min_confidence_threshold is None else min_confidence_threshold

        # Fail fast on a bad keyword map, before any work is done
        keyword_map = dict(config.custom_keyword_map)
        keyword_map.update(custom_keyword_map or {})
        self.categorizer.resolve_keyword_map(keyword_map)

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        profile = self.registry.detect(text)

        if not lines:
            logger.info("Statement text is empty")
            return self._build_result(profile, [], ProcessingStats())

        patterns = self.pattern_generator.build(profile)
        year = self.transformer.detect_statement_year(text)
        context = ExtractionContext(
            patterns=patterns,
            locale=self.transformer.detect_locale(text),
            text_format=self.transformer.detect_format(lines),
            statement_year=year or config.default_year,
        )
        logger.info(
            f"Parsing {len(lines)} lines: bank={profile.name}, locale={context.locale}, "
            f"format={context.text_format}, year={context.statement_year}"
        )

        candidates, stats = self.extractor.extract(lines, context, floor)
        report = self.normalizer.normalize(candidates)

        categorized = self.categorizer.categorize_transactions(
            report.transactions,
            custom_keyword_map=keyword_map,
            use_learning=use_ml_features,
            extra_rules=extra_rules,
        )
        return self._build_result(profile, categorized, stats)

    def _build_result(self, profile: BankProfile, transactions, stats: ProcessingStats) -> ParsingResult:
        stats.successful_extractions = len(transactions)
        confidence = min(0.95, stats.successful_extractions / max(1, stats.processed_lines))

        metadata = ParsingMetadata(
            bank_name=profile.name,
            extraction_confidence=round(confidence, 4),
            total_transactions=len(transactions),
            processing_stats=stats,
            category_distribution=Categorizer.category_distribution(transactions),
        )
        logger.info(
            f"Parsed {len(transactions)} transactions from {stats.processed_lines} lines "
            f"(confidence {metadata.extraction_confidence})"
        )
        return ParsingResult(transactions=transactions, metadata=metadata)


_default_parser: Optional[StatementParser] = None


def get_default_parser() -> StatementParser:
    """Lazily created shared parser for callers that want session-wide learning"""
    global _default_parser
    if _default_parser is None:
        _default_parser = StatementParser()
    return _default_parser
