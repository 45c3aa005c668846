"""Plain-text processing report for a parse run."""

from ..models.core import Category, ParsingResult


def quality_label(confidence: float) -> str:
    if confidence >= 0.8:
        return 'Excellent'
    if confidence >= 0.6:
        return 'Good'
    return 'Fair'


def generate_processing_report(result: ParsingResult) -> str:
    """Summarise a ParsingResult for people reading a terminal"""
    metadata = result.metadata
    stats = metadata.processing_stats

    success_rate = (stats.successful_extractions / max(1, stats.processed_lines)) * 100

    ranked = sorted(metadata.category_distribution.items(), key=lambda item: -item[1])
    top_categories = ', '.join(f"{name}: {count}" for name, count in ranked[:3])
    covered = sum(1 for count in metadata.category_distribution.values() if count > 0)

    lines = [
        "STATEMENT PARSING REPORT",
        "========================",
        f"Bank: {metadata.bank_name}",
        f"Total Transactions: {metadata.total_transactions}",
        f"Detected Locale: {stats.detected_locale}",
        f"Detected Format: {stats.detected_format}",
        "",
        "Processing Stats:",
        f"- Lines Processed: {stats.processed_lines}",
        f"- Lines Skipped: {stats.skipped_lines}",
        f"- Section Headers: {stats.section_headers}",
        f"- Successful Extractions: {stats.successful_extractions}",
        f"- Multi-line Transactions: {stats.multi_line_transactions}",
        f"- CSV Transactions: {stats.csv_transactions}",
        f"- Tabular Transactions: {stats.tabular_transactions}",
        f"- Success Rate: {success_rate:.1f}%",
        "",
        "Categorization:",
        f"- Top Categories: {top_categories}",
        f"- Category Coverage: {covered}/{len(Category)} categories",
        "",
        "Quality Metrics:",
        f"- Extraction Confidence: {metadata.extraction_confidence:.2f}",
        f"- Extraction Quality: {quality_label(metadata.extraction_confidence)}",
    ]
    return '\n'.join(lines) + '\n'
