"""Command-line interface for the statement parser."""

import json
import logging
import sys
from typing import Dict, List, Optional

import click
import yaml

from .models.core import ParsingResult
from .parser import StatementParser
from .utils.config_manager import ConfigManager
from .utils.csv_writer import CSVWriter
from .utils.error_handler import BankParseError, configure_logging
from .utils.report import generate_processing_report
from .utils.text_extractor import TextExtractor
from .utils.validation import ValidationEngine


logger = logging.getLogger(__name__)


class BankParseCLI:
    """Wires configuration, text extraction and the parser together for the CLI"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.parser = StatementParser(self.config)
        self.text_extractor = TextExtractor()
        self.csv_writer = CSVWriter()
        self.validation_engine = ValidationEngine(self.config.max_amount)

    def load_keyword_map(self, path: str) -> Dict[str, List[str]]:
        """Read a {category: [keywords]} map from a JSON or YAML file"""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise click.BadParameter(f"{path} must contain a mapping of category to keywords")
        return data

    def parse_file(self, file_path: str, use_learning: bool = True,
                   min_confidence: Optional[float] = None,
                   keyword_map: Optional[Dict[str, List[str]]] = None) -> ParsingResult:
        text = self.text_extractor.extract_text(file_path)
        return self.parser.parse_transactions(
            text,
            use_ml_features=use_learning,
            custom_keyword_map=keyword_map,
            min_confidence_threshold=min_confidence,
        )

    def detect_file(self, file_path: str) -> Dict[str, str]:
        text = self.text_extractor.extract_text(file_path)
        transformer = self.parser.transformer
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return {
            'bank': self.parser.registry.detect(text).name,
            'locale': transformer.detect_locale(text),
            'format': transformer.detect_format(lines),
        }

    def format_result(self, result: ParsingResult, output_format: str) -> str:
        if output_format == 'json':
            return json.dumps(result.to_dict(), indent=2)
        if output_format == 'report':
            return generate_processing_report(result)
        raise ValueError(f"Unsupported output format: {output_format}")


# CLI Commands using Click
@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', help='Also write JSON-lines logs to this file')
@click.pass_context
def cli(ctx, config, verbose, log_file):
    """Bank statement parser - extract and categorize transactions from statements"""
    configure_logging(verbose=verbose, log_file=log_file)

    ctx.ensure_object(dict)
    ctx.obj['cli'] = BankParseCLI(config)


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--format', 'output_format', type=click.Choice(['json', 'csv', 'report']),
              default='json', help='Output format')
@click.option('--output', '-o', help='Write output to this file instead of stdout')
@click.option('--min-confidence', type=click.FloatRange(0.0, 1.0),
              help='Discard extraction candidates below this confidence')
@click.option('--no-learning', is_flag=True, help='Do not use or update the learned merchant categories')
@click.option('--keywords', type=click.Path(exists=True, dir_okay=False),
              help='JSON/YAML file mapping categories to extra keywords')
@click.pass_context
def parse(ctx, file_path, output_format, output, min_confidence, no_learning, keywords):
    """Parse a statement file (PDF, CSV or text)"""
    cli_instance = ctx.obj['cli']

    try:
        keyword_map = cli_instance.load_keyword_map(keywords) if keywords else None
        result = cli_instance.parse_file(
            file_path,
            use_learning=not no_learning,
            min_confidence=min_confidence,
            keyword_map=keyword_map,
        )
    except BankParseError as e:
        logger.debug(f"Parse failed: {e.message}",
                     extra={'category': e.category.value, 'file_path': e.file_path})
        click.echo(f"✗ Error parsing {file_path}: {e.message}", err=True)
        sys.exit(1)

    if output_format == 'csv':
        if output:
            if not cli_instance.csv_writer.write_transactions(result.transactions, output):
                click.echo(f"✗ Failed to write {output}", err=True)
                sys.exit(1)
            for problem in cli_instance.validation_engine.validate_csv_output(output):
                click.echo(f"⚠ {problem}", err=True)
        else:
            cli_instance.csv_writer.write_to_stream(result.transactions, click.get_text_stream('stdout'))
    else:
        rendered = cli_instance.format_result(result, output_format)
        if output:
            with open(output, 'w', encoding='utf-8') as f:
                f.write(rendered)
        else:
            click.echo(rendered)

    if output:
        click.echo(f"✓ {result.metadata.total_transactions} transactions written to {output}", err=True)


@cli.command()
@click.pass_context
def banks(ctx):
    """List the registered bank profiles"""
    cli_instance = ctx.obj['cli']

    click.echo("Registered bank profiles")
    click.echo("=" * 40)
    for key, profile in cli_instance.parser.registry.profiles().items():
        click.echo(f"{key}: {profile.name}")
        click.echo(f"  Date formats: {', '.join(profile.date_formats)}")
        click.echo(f"  Layouts: {', '.join(profile.layouts)}")
        click.echo(f"  Currency: {profile.currency}")
        if profile.features:
            click.echo(f"  Features: {', '.join(profile.features)}")


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def detect(ctx, file_path):
    """Show the detected bank, locale and layout of a statement"""
    cli_instance = ctx.obj['cli']

    try:
        detected = cli_instance.detect_file(file_path)
    except BankParseError as e:
        click.echo(f"✗ Error reading {file_path}: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"Bank: {detected['bank']}")
    click.echo(f"Locale: {detected['locale']}")
    click.echo(f"Format: {detected['format']}")


@cli.command()
@click.argument('output_path', default='bankparse.json')
@click.option('--format', 'config_format', type=click.Choice(['json', 'yaml']), default='json',
              help='Configuration file format')
@click.pass_context
def init_config(ctx, output_path, config_format):
    """Generate configuration template file"""
    cli_instance = ctx.obj['cli']

    # Adjust extension based on format
    if config_format == 'yaml' and not output_path.endswith(('.yml', '.yaml')):
        output_path = output_path.replace('.json', '.yml')
    elif config_format == 'json' and not output_path.endswith('.json'):
        output_path = output_path.replace('.yml', '.json').replace('.yaml', '.json')

    try:
        cli_instance.config_manager.save_config_template(output_path)
    except OSError as e:
        click.echo(f"✗ Error generating config template: {str(e)}", err=True)
        sys.exit(1)

    click.echo(f"✓ Configuration template generated: {output_path}")


if __name__ == '__main__':
    cli()
