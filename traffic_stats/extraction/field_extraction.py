"""
Field extraction through the Gemini API.

Turns report text into candidate traffic records. Calls are retried with
exponential backoff on rate-limit and server-side failures only.
"""

import json
import logging
import os
import time

import google.generativeai as genai

from traffic_stats.consolidate.identity import identity_key
from traffic_stats.errors import ExtractionError, TerminalExtractionError, TransientExtractionError

module_logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.0-flash'
CATEGORIES = ('Passengers', 'Cargo', 'ATMs')

FULL_RECORD_PROMPT = """Extract detailed airport traffic statistics as JSON: {"data": [record, ...]}.
Each record has:
  airportName (string), category (string), timePeriod (e.g. "Oct 2023"), month (string), year (number),
  reportType ("Monthly" or "Yearly"),
  passengers: {domestic, international, total, previousYear, previousMonth, growthPercentage},
  cargo: {international: {inbound, outbound, total}, domestic: {inbound, outbound, total},
          total, previousYear, previousMonth, growthPercentage},
  atms: {domestic: {pax, cargo, total}, international: {pax, cargo, total},
         total, previousYear, previousMonth, growthPercentage}
Focus on:
- Passengers (DOM, INTL, Total, YoY Growth %)
- Cargo (DOM, INTL, Total, YoY Growth %)
- ATMs (aircraft movements): Total, INTL and DOM, with the DOM/INTL passenger and cargo ATM splits
- Comparative stats from the same month last year.
All numbers are plain numbers without thousands separators.

Text to parse:
"""

CATEGORY_PROMPT = """Extract {category} traffic statistics as JSON: {{"data": [row, ...]}}.
Each row has:
  airportName (string), airportType (International, JV, Custom, Domestic, ...),
  dataType ("{category}"), category ("Domestic", "International" or "Total"),
  monthValue, prevMonthValue (same month previous year), monthChange (percent),
  ytdValue, prevYtdValue, ytdChange, month (string), year (string), fiscalYear (string)
All numbers are plain numbers without thousands separators.

Text to parse:
"""

_FAMILIES = {'Passengers': 'passengers', 'Cargo': 'cargo', 'ATMs': 'atms'}
_SPLITS = {'Domestic': 'domestic', 'International': 'international'}


def _status_of(error):
    for attr in ('status', 'code', 'status_code'):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_retryable(error):
    """Rate-limit (429) and server-side (5xx) failures are retryable; everything else is terminal."""
    if isinstance(error, TransientExtractionError):
        return True
    if isinstance(error, TerminalExtractionError):
        return False
    status = _status_of(error)
    return status is not None and (status == 429 or status >= 500)


def with_retry(fn, max_attempts=3, initial_delay=1.0, logger=None, sleep=time.sleep):
    """
    Call fn until it succeeds, a terminal failure occurs, or max_attempts is reached.

    The delay before the n-th retry is initial_delay * 2 ** (n - 1).

    Args:
        fn: Zero-argument callable
        max_attempts: Total number of attempts, including the first
        initial_delay: Delay in seconds before the first retry
        logger: Logger instance (module logger when None)
        sleep: Sleep function, injectable for tests

    Returns:
        Any: fn's return value

    Raises:
        TransientExtractionError: Retryable failures persisted through every attempt
        TerminalExtractionError: A non-retryable failure occurred
    """
    logger = logger or module_logger
    delay = initial_delay
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except Exception as e:
            if not is_retryable(e):
                if isinstance(e, ExtractionError):
                    raise
                raise TerminalExtractionError(f'Extraction failed: {e}', status=_status_of(e)) from e
            if attempt >= max_attempts:
                logger.error(f'Extraction failed after {attempt} attempt(s): {e}')
                raise TransientExtractionError(
                    f'Extraction failed after {attempt} attempt(s): {e}', status=_status_of(e)
                ) from e
            logger.warning(f'Transient extraction failure (attempt {attempt}/{max_attempts}), retrying in {delay:g}s: {e}')
            sleep(delay)
            delay *= 2


def parse_response_text(text):
    """
    Parse the model's JSON output into a list of row dicts.

    Raises:
        TerminalExtractionError: If the output is not the expected JSON shape
    """
    if not text or not text.strip():
        return []
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise TerminalExtractionError(f'Model returned malformed JSON: {e}') from e
    if isinstance(payload, list):
        return [row for row in payload if isinstance(row, dict)]
    if not isinstance(payload, dict):
        raise TerminalExtractionError('Model returned JSON that is neither an object nor an array')
    data = payload.get('data') or []
    if not isinstance(data, list):
        raise TerminalExtractionError("Model JSON 'data' field is not an array")
    return [row for row in data if isinstance(row, dict)]


def fold_category_rows(rows):
    """
    Fold category-split rows (one metric family and split per row) into nested
    traffic record candidates, one per airport/month/year.

    monthValue fills the split value, prevMonthValue the previous-year value and
    monthChange the growth percentage; the latter two are taken from 'Total' rows.

    Args:
        rows: Category rows with dataType, category, monthValue, ...

    Returns:
        list: Nested candidate dicts in first-seen order
    """
    folded = {}
    for row in rows:
        family = _FAMILIES.get(str(row.get('dataType', '')).strip())
        if family is None:
            continue
        key = identity_key(row.get('airportName'), row.get('month'), row.get('year'))
        record = folded.get(key)
        if record is None:
            record = {
                'airportName': row.get('airportName'),
                'category': row.get('airportType'),
                'month': row.get('month'),
                'year': row.get('year'),
                'reportType': 'Monthly',
                'passengers': {},
                'cargo': {},
                'atms': {},
            }
            folded[key] = record

        metrics = record[family]
        split = str(row.get('category', '')).strip()
        value = row.get('monthValue')
        if split == 'Total':
            metrics['total'] = value
            metrics['previousYear'] = row.get('prevMonthValue')
            metrics['growthPercentage'] = row.get('monthChange')
        elif split in _SPLITS:
            if family == 'passengers':
                metrics[_SPLITS[split]] = value
            else:
                metrics.setdefault(_SPLITS[split], {})['total'] = value
    return list(folded.values())


class GeminiFieldExtractor:
    """
    Field-extraction client.

    extract(text, category=None) returns nested TrafficRecord candidates. With a
    category hint ('Passengers', 'Cargo' or 'ATMs') the model is asked for
    category-split rows, which are folded into candidates.
    """

    def __init__(self, model=DEFAULT_MODEL, api_key=None, api_key_env='GEMINI_API_KEY', max_attempts=3,
                 initial_delay=1.0, logger=None):
        api_key = api_key or os.getenv(api_key_env, '').strip()
        if not api_key:
            raise ValueError(f'Missing API key: set {api_key_env}')
        genai.configure(api_key=api_key)
        self.model_name = model
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.logger = logger or module_logger
        self._model = genai.GenerativeModel(
            model_name=model,
            generation_config={'temperature': 0.0, 'response_mime_type': 'application/json'},
        )

    def _generate(self, prompt):
        response = self._model.generate_content(prompt)
        return (getattr(response, 'text', '') or '').strip()

    def extract(self, text, category=None):
        if category is not None and category not in CATEGORIES:
            raise ValueError(f'Unknown category hint: {category}')

        if category is None:
            prompt = FULL_RECORD_PROMPT + text
        else:
            prompt = CATEGORY_PROMPT.format(category=category) + text

        raw = with_retry(
            lambda: self._generate(prompt),
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            logger=self.logger,
        )
        rows = parse_response_text(raw)
        self.logger.debug(f'{self.model_name} returned {len(rows)} row(s)')
        return rows if category is None else fold_category_rows(rows)


def build_extractor(extraction_config, logger):
    """Create the configured extractor from the 'extraction' config section."""
    return GeminiFieldExtractor(
        model=extraction_config.get('model', DEFAULT_MODEL),
        api_key_env=extraction_config.get('api_key_env', 'GEMINI_API_KEY'),
        max_attempts=extraction_config.get('max_attempts', 3),
        initial_delay=extraction_config.get('initial_delay', 1.0),
        logger=logger,
    )
