"""
Batch processing of extracted drug test reports.

Loads extracted report rows and candidate records from Excel/CSV, ranks
each report against the candidates, classifies the detected substances
against the matched client's medications, and writes results plus a
review queue back to Excel.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill
from tqdm import tqdm

from drugtest_intake.classification.result_classifier import ResultClassifier, active_medications
from drugtest_intake.classification.types import BreathalyzerReading, CannotEvaluate, Medication
from drugtest_intake.matching.match_ranker import MatchRanker
from drugtest_intake.matching.types import CandidateRecord

logger = logging.getLogger(__name__)

REPORT_COLUMNS = {
    'report_id': ['report_id', 'report', 'file', 'filename', 'id'],
    'donor_name': ['donor_name', 'donor', 'name', 'client_name', 'donor name'],
    'collection_date': ['collection_date', 'collected', 'date', 'collection date'],
    'test_type': ['test_type', 'panel', 'test type'],
    'detected_substances': ['detected_substances', 'detected', 'positives', 'substances'],
    'breathalyzer_bac': ['breathalyzer_bac', 'bac', 'breathalyzer'],
}

CANDIDATE_COLUMNS = {
    'id': ['id', 'test_id', 'candidate_id'],
    'display_name': ['display_name', 'client_name', 'name', 'clientname'],
    'test_type': ['test_type', 'testtype', 'panel'],
    'collection_date_iso': ['collection_date_iso', 'collection_date', 'collectiondate', 'date'],
    'screening_status': ['screening_status', 'screeningstatus', 'status'],
    'headshot_ref': ['headshot_ref', 'client_headshot', 'headshot'],
}


def detect_column(df: pd.DataFrame, candidate_names: Sequence[str]) -> Optional[str]:
    """
    Find the first DataFrame column matching one of the candidate names.

    Comparison is case-insensitive on stripped column names.
    """
    columns_lower = {str(col).strip().lower(): col for col in df.columns}
    for candidate in candidate_names:
        if candidate in columns_lower:
            return columns_lower[candidate]
    return None


def load_table(file_path) -> pd.DataFrame:
    """
    Load an Excel or CSV file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the extension is unsupported
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    if file_path.suffix.lower() in ['.xlsx', '.xls']:
        df = pd.read_excel(file_path, dtype=str)
    elif file_path.suffix.lower() == '.csv':
        df = pd.read_csv(file_path, dtype=str)
    else:
        raise ValueError(f"Unsupported file format: {file_path.suffix}")

    logger.info(f"Loaded {len(df)} rows, {len(df.columns)} columns from {file_path}")
    return df


def _cell(row: Mapping, column: Optional[str]) -> Optional[str]:
    if column is None:
        return None
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _map_columns(df: pd.DataFrame, aliases: Dict[str, List[str]], required: Sequence[str]) -> Dict[str, Optional[str]]:
    mapping = {field: detect_column(df, names) for field, names in aliases.items()}
    missing = [field for field in required if mapping[field] is None]
    if missing:
        raise ValueError(
            f"Missing required column(s) {missing}. "
            f"Available columns: {', '.join(map(str, df.columns))}"
        )
    return mapping


def candidates_from_frame(df: pd.DataFrame) -> List[CandidateRecord]:
    """
    Build candidate records from a DataFrame.

    Raises:
        ValueError: If the id or name column cannot be found
    """
    columns = _map_columns(df, CANDIDATE_COLUMNS, required=['id', 'display_name'])
    records = []
    for row in df.to_dict(orient='records'):
        records.append(CandidateRecord(
            id=_cell(row, columns['id']) or '',
            display_name=_cell(row, columns['display_name']) or '',
            test_type=_cell(row, columns['test_type']) or '',
            collection_date_iso=_cell(row, columns['collection_date_iso']) or '',
            screening_status=_cell(row, columns['screening_status']) or '',
            headshot_ref=_cell(row, columns['headshot_ref']),
        ))
    return records


def load_medications(file_path) -> Dict[str, List[Medication]]:
    """
    Load medications keyed by candidate id from a JSON file.

    Expected shape: {"<candidate id>": [{"medicationName": ..., "detectedAs": [...],
    "requireConfirmation": true, "status": "active"}, ...]}
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Medications file must contain a JSON object, got {type(raw).__name__}")

    return {
        str(key): [Medication.from_dict(item) for item in (items or [])]
        for key, items in raw.items()
    }


def split_substances(value: Optional[str]) -> List[str]:
    """Split a ';' or ',' separated substance cell into codes."""
    if not value:
        return []
    return [part.strip() for part in value.replace(';', ',').split(',') if part.strip()]


def _breathalyzer(value: Optional[str]) -> Optional[BreathalyzerReading]:
    if value is None:
        return None
    try:
        return BreathalyzerReading(taken=True, result_bac=float(value))
    except ValueError:
        logger.debug(f"Ignoring malformed breathalyzer value '{value}'")
        return None


def process_reports(reports: pd.DataFrame,
                    candidates: List[CandidateRecord],
                    ranker: MatchRanker,
                    classifier: ResultClassifier,
                    medications: Optional[Dict[str, List[Medication]]] = None,
                    is_screen_workflow: bool = False,
                    show_progress: bool = False) -> List[Dict]:
    """
    Rank and classify every extracted report.

    A report is flagged for review when no candidate clears the
    high-confidence threshold, or when the classification is not
    auto-accepted or cannot be evaluated.

    Args:
        reports: Extracted report rows
        candidates: Candidate records to match against
        ranker: MatchRanker instance
        classifier: ResultClassifier instance
        medications: Medications keyed by candidate id (skip classification if None)
        is_screen_workflow: Exclude already screened/complete candidates
        show_progress: Display a tqdm progress bar

    Returns:
        One result dictionary per report row
    """
    columns = _map_columns(reports, REPORT_COLUMNS, required=['donor_name'])
    rows = reports.to_dict(orient='records')
    iterator = tqdm(rows, desc="Matching reports") if show_progress else rows

    results = []
    for index, row in enumerate(iterator):
        donor_name = _cell(row, columns['donor_name'])
        collection_date = _cell(row, columns['collection_date'])
        test_type = _cell(row, columns['test_type'])

        ranked = ranker.rank(
            candidates,
            extracted_name=donor_name,
            extracted_date_iso=collection_date,
            uploaded_test_type=test_type,
            is_screen_workflow=is_screen_workflow,
        )
        best = ranker.best_match(ranked)

        record = {
            'report_id': _cell(row, columns['report_id']) or str(index + 1),
            'donor_name': donor_name,
            'matched_candidate_id': best.candidate.id if best else None,
            'matched_client_name': best.candidate.display_name if best else None,
            'match_score': ranked[0].score if ranked else 0,
            'top_3_candidates': json.dumps([r.to_dict() for r in ranked[:3]]),
            'outcome': None,
            'expected_positives': '',
            'unexpected_positives': '',
            'unexpected_negatives': '',
            'auto_accept': False,
            'review_flag': True,
            'review_reason': None,
        }

        if best is None:
            record['review_reason'] = 'no high-confidence match'
            results.append(record)
            continue

        if medications is None:
            record['review_flag'] = False
            results.append(record)
            continue

        verdict = classifier.evaluate(
            split_substances(_cell(row, columns['detected_substances'])),
            active_medications(medications.get(best.candidate.id, [])),
            breathalyzer=_breathalyzer(_cell(row, columns['breathalyzer_bac'])),
            test_type=test_type,
        )

        if isinstance(verdict, CannotEvaluate):
            record['review_reason'] = verdict.reason
        else:
            record.update({
                'outcome': verdict.outcome.value,
                'expected_positives': ', '.join(sorted(verdict.expected_positives)),
                'unexpected_positives': ', '.join(sorted(verdict.unexpected_positives)),
                'unexpected_negatives': ', '.join(sorted(verdict.unexpected_negatives)),
                'auto_accept': verdict.auto_accept,
                'review_flag': not verdict.auto_accept,
                'review_reason': None if verdict.auto_accept else verdict.outcome.value,
            })

        results.append(record)

    return results


def generate_summary_report(results: List[Dict]) -> str:
    """Summary statistics for a processed batch."""
    total = len(results)
    if total == 0:
        return "No reports processed."

    matched = sum(1 for r in results if r['matched_candidate_id'])
    auto_accepted = sum(1 for r in results if r['auto_accept'])
    flagged = sum(1 for r in results if r['review_flag'])

    outcome_counts: Dict[str, int] = {}
    for r in results:
        if r['outcome']:
            outcome_counts[r['outcome']] = outcome_counts.get(r['outcome'], 0) + 1

    lines = [
        "BATCH INTAKE SUMMARY",
        f"Reports processed:       {total:6,}",
        f"High-confidence matches: {matched:6,} ({matched / total * 100:5.1f}%)",
        f"Auto-accepted:           {auto_accepted:6,} ({auto_accepted / total * 100:5.1f}%)",
        f"Review flagged:          {flagged:6,} ({flagged / total * 100:5.1f}%)",
    ]
    for outcome, count in sorted(outcome_counts.items()):
        lines.append(f"  {outcome:<30} {count:6,}")
    return "\n".join(lines)


def write_excel_output(results: List[Dict], output_path, sheet_name: str = "Intake Results") -> Path:
    """
    Write results to an Excel file with a styled header and
    review rows highlighted.

    Returns:
        The output path
    """
    df = pd.DataFrame(results)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)
        for cell in ws[1]:
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')

        for column in ws.columns:
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

        if 'review_flag' in df.columns:
            yellow_fill = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
            for row_idx, flagged in enumerate(df['review_flag'], start=2):
                if flagged:
                    for col_idx in range(1, len(df.columns) + 1):
                        ws.cell(row=row_idx, column=col_idx).fill = yellow_fill

    logger.info(f"Excel output written to: {output_path}")
    return output_path
