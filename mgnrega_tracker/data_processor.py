"""
Data Processing Module

Pure derivations over MGNREGA records already fetched from the API:
chronological ordering, district listings, KPI cards, trend series and
statistics, and comparative ranking. Nothing here performs I/O or mutates
its inputs, and malformed numeric fields are read as 0 via parse_or_zero.
"""

# Standard library imports
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

# Third-party imports
import numpy as np
import pandas as pd

# Local imports
from .formatting import (
    parse_or_zero,
    format_number,
    format_currency,
    format_wage,
    format_percentage,
    format_days,
    format_share,
)

# Constants
# Months in financial-year order: a 'YYYY-YYYY' year runs April to March
FISCAL_MONTHS = ('Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep',
                 'Oct', 'Nov', 'Dec', 'Jan', 'Feb', 'Mar')
VALID_GRANULARITIES = ['monthly', 'yearly']
DEFAULT_COMPARISON_LIMIT = 5

RECORD_NUMERIC_FIELDS = [
    'Approved_Labour_Budget',
    'Average_Wage_rate_per_day_per_person',
    'Average_days_of_employment_provided_per_Household',
    'Differently_abled_persons_worked',
    'Material_and_skilled_Wages',
    'Number_of_Completed_Works',
    'Number_of_GPs_with_NIL_exp',
    'Number_of_Ongoing_Works',
    'Persondays_of_Central_Liability_so_far',
    'SC_persondays',
    'SC_workers_against_active_workers',
    'ST_persondays',
    'ST_workers_against_active_workers',
    'Total_Adm_Expenditure',
    'Total_Exp',
    'Total_Households_Worked',
    'Total_Individuals_Worked',
    'Total_No_of_Active_Job_Cards',
    'Total_No_of_Active_Workers',
    'Total_No_of_HHs_completed_100_Days_of_Wage_Employment',
    'Total_No_of_JobCards_issued',
    'Total_No_of_Workers',
    'Total_No_of_Works_Takenup',
    'Wages',
    'Women_Persondays',
    'percent_of_Category_B_Works',
    'percent_of_Expenditure_on_Agriculture_Allied_Works',
    'percent_of_NRM_Expenditure',
    'percentage_payments_gererated_within_15_days',
]
RECORD_IDENTITY_FIELDS = ['fin_year', 'month', 'state_code', 'state_name',
                          'district_code', 'district_name']

_FORMATTERS = {
    'number': format_number,
    'currency': format_currency,
    'wage': format_wage,
    'days': format_days,
    'percentage': format_percentage,
}

# Logger setup
logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


@dataclass(frozen=True)
class MetricDefinition:
    """How a record field is named, described and formatted."""

    field: str
    name: str
    description: str
    unit: str = ''
    kind: str = 'number'

    def format(self, raw: Any) -> str:
        return _FORMATTERS[self.kind](raw)


METRICS: Dict[str, MetricDefinition] = {
    m.field: m for m in [
        MetricDefinition('Total_Individuals_Worked', 'Employment Provided',
                         'Total individuals who got work', 'people'),
        MetricDefinition('Average_Wage_rate_per_day_per_person', 'Average Wage Rate',
                         'Daily wage per person', 'per day', 'wage'),
        MetricDefinition('Average_days_of_employment_provided_per_Household', 'Work Days per Household',
                         'Average employment days per household', 'days', 'days'),
        MetricDefinition('Number_of_Completed_Works', 'Completed Works',
                         'Development works completed', 'works'),
        MetricDefinition('Total_Exp', 'Total Expenditure',
                         'Total funds utilized', kind='currency'),
        MetricDefinition('Wages', 'Wages Paid',
                         'Total wages distributed', kind='currency'),
        MetricDefinition('Women_Persondays', 'Women Participation',
                         'Work days by women', 'days'),
        MetricDefinition('percentage_payments_gererated_within_15_days', 'Timely Payments',
                         'Payments within 15 days', kind='percentage'),
    ]
}
COMPARISON_METRICS = list(METRICS)

TREND_METRICS: Dict[str, str] = {
    'employment': 'Total_Individuals_Worked',
    'wages': 'Average_Wage_rate_per_day_per_person',
    'completedWorks': 'Number_of_Completed_Works',
    'womenParticipation': 'Women_Persondays',
    'timelyPayments': 'percentage_payments_gererated_within_15_days',
}


@dataclass(frozen=True)
class District:
    """A (state, district) identity observed in the records."""

    state_name: str
    district_name: str
    state_code: str = ''
    district_code: str = ''


@dataclass
class KPICard:
    title: str
    value: str
    subtitle: str = ''
    description: str = ''
    percentage: Optional[str] = None


@dataclass
class TrendPoint:
    """One period of a trend series; values are keyed by TREND_METRICS id."""

    period: str
    fin_year: str
    month: str
    values: Dict[str, float] = field(default_factory=dict)


@dataclass
class TrendStats:
    metric: str
    current_value: float
    previous_value: float
    change: float
    percentage_change: float
    min_value: float
    max_value: float
    average_value: float
    trend: str


@dataclass
class ComparisonRow:
    district: str
    value: float
    difference: float
    percentage_diff: float
    status: str  # 'better', 'worse' or 'equal'


@dataclass
class ComparisonResult:
    metric: str
    current_district: str
    current_value: float
    rows: List[ComparisonRow]
    max_value: float
    min_value: float
    average_value: float
    rank: int
    total: int


def format_metric(field_name: str, raw: Any) -> str:
    """Format a raw record value using the metric catalogue (numbers by default)."""
    definition = METRICS.get(field_name)
    if definition is None:
        return format_number(raw)
    return definition.format(raw)


def metric_value(record: Optional[Record], field_name: str) -> float:
    """Numeric value of one field of a record; 0 when the record is None."""
    if record is None:
        return 0.0
    return parse_or_zero(record.get(field_name))


# Chronological ordering

def month_index(month: Any) -> int:
    """
    Position of a three-letter month within the financial year (Apr=0, Mar=11), or -1.

    This is not the calendar index (Jan=0): Jan-Mar sort after Apr-Dec of
    the same 'YYYY-YYYY' year.
    """
    try:
        return FISCAL_MONTHS.index(month)
    except ValueError:
        return -1


def _chronological_key(record: Record):
    return (str(record.get('fin_year') or ''), month_index(record.get('month')))


def sort_chronologically(records: Iterable[Record], latest_first: bool = True) -> List[Record]:
    """
    Sort records by financial year, then month within the financial year.

    Financial years compare as strings, which is correct for the fixed-width
    'YYYY-YYYY' format; months follow FISCAL_MONTHS, so Mar is the last month
    of its year. The sort is stable in both directions: records with
    the same year and month keep their original relative order.
    """
    return sorted(records, key=_chronological_key, reverse=latest_first)


def get_latest_record(records: Iterable[Record]) -> Optional[Record]:
    """Most recent record by financial year and month, or None if empty."""
    ordered = sort_chronologically(records, latest_first=True)
    return ordered[0] if ordered else None


# District and period listings

def extract_districts(records: Iterable[Record]) -> List[District]:
    """
    Distinct districts keyed by (state_name, district_name).

    The first record seen for a key supplies its codes, and districts are
    returned in order of first appearance.
    """
    districts: Dict[tuple, District] = {}
    for record in records:
        key = (record.get('state_name', ''), record.get('district_name', ''))
        if key not in districts:
            districts[key] = District(
                state_name=key[0],
                district_name=key[1],
                state_code=record.get('state_code', ''),
                district_code=record.get('district_code', ''),
            )
    return list(districts.values())


def records_for_district(records: Iterable[Record], district_name: str) -> List[Record]:
    """
    Records whose district_name equals district_name exactly.

    A district-filtered fetch can be answered by the unfiltered fallback
    response, which holds every district; this keeps only the requested one.
    """
    return [r for r in records if r.get('district_name') == district_name]


def unique_states(records: Iterable[Record]) -> List[str]:
    """Sorted distinct state names."""
    return sorted({r.get('state_name') for r in records if r.get('state_name')})


def districts_in_state(records: Iterable[Record], state_name: Optional[str] = None) -> List[str]:
    """Sorted distinct district names, optionally restricted to one state."""
    return sorted({
        r.get('district_name') for r in records
        if r.get('district_name') and (state_name is None or r.get('state_name') == state_name)
    })


def financial_years(records: Iterable[Record], latest_first: bool = True) -> List[str]:
    """Distinct financial years, most recent first by default."""
    years = {r.get('fin_year') for r in records if r.get('fin_year')}
    return sorted(years, reverse=latest_first)


# KPI summary

def build_kpi_summary(record: Record) -> Dict[str, List[KPICard]]:
    """
    Formatted KPI cards for one record, grouped into dashboard sections.

    Sections are 'performance', 'social_inclusion', 'financial' and
    'additional'. Social-inclusion cards carry their share of
    Total_Individuals_Worked as a one-decimal string, or None when that
    base is 0.
    """
    individuals = metric_value(record, 'Total_Individuals_Worked')

    def share(field_name: str) -> Optional[str]:
        return format_share(metric_value(record, field_name), individuals)

    performance = [
        KPICard('Employment Provided', format_number(record.get('Total_Individuals_Worked')),
                'People employed', 'Total individuals who got work under MGNREGA'),
        KPICard('Average Wage Rate', format_wage(record.get('Average_Wage_rate_per_day_per_person')),
                'Per day per person', 'Average daily wage rate provided'),
        KPICard('Work Days Provided',
                format_days(record.get('Average_days_of_employment_provided_per_Household')),
                'Days per household', 'Average days of employment per household'),
        KPICard('Completed Works', format_number(record.get('Number_of_Completed_Works')),
                'Projects finished', 'Development works successfully completed'),
    ]

    social_inclusion = [
        KPICard('Women Participation', format_number(record.get('Women_Persondays')),
                'Women work days', 'Total days worked by women', share('Women_Persondays')),
        KPICard('SC Community', format_number(record.get('SC_persondays')),
                'SC work days', 'Days worked by SC community', share('SC_persondays')),
        KPICard('ST Community', format_number(record.get('ST_persondays')),
                'ST work days', 'Days worked by ST community', share('ST_persondays')),
        KPICard('Differently Abled', format_number(record.get('Differently_abled_persons_worked')),
                'Persons worked', 'Employment provided to differently abled'),
    ]

    financial = [
        KPICard('Total Expenditure', format_currency(record.get('Total_Exp')),
                description='Total funds utilized'),
        KPICard('Wages Paid', format_currency(record.get('Wages')),
                description='Total wages distributed to workers'),
        KPICard('Timely Payments',
                format_percentage(record.get('percentage_payments_gererated_within_15_days')),
                description='Payments made within 15 days'),
    ]

    additional = [
        KPICard('Active Job Cards', format_number(record.get('Total_No_of_Active_Job_Cards'))),
        KPICard('Active Workers', format_number(record.get('Total_No_of_Active_Workers'))),
        KPICard('Households Completed 100 Days',
                format_number(record.get('Total_No_of_HHs_completed_100_Days_of_Wage_Employment'))),
        KPICard('Ongoing Works', format_number(record.get('Number_of_Ongoing_Works'))),
        KPICard('Total Works Taken Up', format_number(record.get('Total_No_of_Works_Takenup'))),
        KPICard('Approved Labour Budget', format_number(record.get('Approved_Labour_Budget'))),
    ]

    return {
        'performance': performance,
        'social_inclusion': social_inclusion,
        'financial': financial,
        'additional': additional,
    }


# Trends

def _trend_point(record: Record, period: str) -> TrendPoint:
    return TrendPoint(
        period=period,
        fin_year=record.get('fin_year', ''),
        month=record.get('month', ''),
        values={metric_id: metric_value(record, field_name)
                for metric_id, field_name in TREND_METRICS.items()},
    )


def build_trend_series(
    records: Iterable[Record],
    granularity: str = 'monthly',
    financial_year: Optional[str] = None
) -> List[TrendPoint]:
    """
    Build an oldest-first trend series from a district's records.

    Monthly granularity yields one point per record labelled
    "<Month> <FinYear>". Yearly granularity yields one point per financial
    year, taken from the most recent month of that year (not a sum).

    Args:
        records: Records of a single district
        granularity: 'monthly' or 'yearly'
        financial_year: Restrict the series to this financial year

    Raises:
        ValueError: If granularity is not one of VALID_GRANULARITIES

    Example:
        >>> series = build_trend_series(records, 'yearly')
        >>> [p.period for p in series]
        ['2022-2023', '2023-2024']
    """
    if granularity not in VALID_GRANULARITIES:
        raise ValueError(
            f"Invalid granularity '{granularity}'. Valid options: {VALID_GRANULARITIES}"
        )

    ordered = sort_chronologically(records, latest_first=False)
    if financial_year:
        ordered = [r for r in ordered if r.get('fin_year') == financial_year]

    if granularity == 'monthly':
        return [_trend_point(r, f"{r.get('month', '')} {r.get('fin_year', '')}") for r in ordered]

    by_year: Dict[str, Record] = {}
    for record in ordered:
        # Later months overwrite earlier ones; dict keeps first-seen year order
        by_year[record.get('fin_year', '')] = record
    return [_trend_point(record, year) for year, record in by_year.items()]


def calculate_trend_stats(series: Sequence[TrendPoint], metric: str) -> Optional[TrendStats]:
    """
    Summary statistics of one metric over a trend series.

    The current value is the last point and the previous value the one
    before it (or the current value for a single point). Percentage change
    is 0 when the previous value is not positive.

    Raises:
        ValueError: If metric is not a TREND_METRICS id
    """
    if metric not in TREND_METRICS:
        raise ValueError(f"Unknown trend metric '{metric}'. Valid options: {list(TREND_METRICS)}")

    if not series:
        return None

    values = np.array([point.values.get(metric, 0.0) for point in series], dtype=float)
    current_value = float(values[-1])
    previous_value = float(values[-2]) if len(values) > 1 else current_value

    change = current_value - previous_value
    percentage_change = (change / previous_value) * 100 if previous_value > 0 else 0.0

    if change > 0:
        trend = 'up'
    elif change < 0:
        trend = 'down'
    else:
        trend = 'stable'

    return TrendStats(
        metric=metric,
        current_value=current_value,
        previous_value=previous_value,
        change=change,
        percentage_change=percentage_change,
        min_value=float(np.min(values)),
        max_value=float(np.max(values)),
        average_value=float(np.mean(values)),
        trend=trend,
    )


# Comparison

def select_comparison_candidates(
    all_districts: Iterable[District],
    current: District,
    same_state_only: bool = False,
    limit: Optional[int] = DEFAULT_COMPARISON_LIMIT
) -> List[District]:
    """Districts to compare against: never the current one, optionally same state only."""
    candidates = [
        d for d in all_districts
        if d.district_name != current.district_name
        and (not same_state_only or d.state_name == current.state_name)
    ]
    return candidates if limit is None else candidates[:limit]


def compare_districts(
    current_records: Iterable[Record],
    candidate_records: Mapping[str, Iterable[Record]],
    metric: str
) -> Optional[ComparisonResult]:
    """
    Rank the current district against candidates on one metric.

    Each district's value is taken from its own latest record. Candidates
    without records are left out. Rows are sorted by value, highest first,
    and the rank is the current district's position by value among the
    candidates plus itself (1 = highest).

    Args:
        current_records: Records of the district being viewed
        candidate_records: Mapping of district name to that district's records,
                           as returned by MGNREGAClient.fetch_multiple_districts
        metric: Record field to compare, e.g. 'Total_Individuals_Worked'

    Returns:
        ComparisonResult, or None if the current district has no records
    """
    current_latest = get_latest_record(current_records)
    if current_latest is None:
        return None

    current_value = metric_value(current_latest, metric)
    rows: List[ComparisonRow] = []

    for name, records in candidate_records.items():
        latest = get_latest_record(records)
        if latest is None:
            logger.debug(f"No records for comparison district {name}, skipping")
            continue

        value = metric_value(latest, metric)
        difference = value - current_value
        percentage_diff = (difference / current_value) * 100 if current_value > 0 else 0.0

        if difference > 0:
            status = 'better'
        elif difference < 0:
            status = 'worse'
        else:
            status = 'equal'

        rows.append(ComparisonRow(name, value, difference, percentage_diff, status))

    rows.sort(key=lambda row: row.value, reverse=True)

    values = np.array([row.value for row in rows], dtype=float)
    return ComparisonResult(
        metric=metric,
        current_district=current_latest.get('district_name', ''),
        current_value=current_value,
        rows=rows,
        max_value=float(np.max(values)) if rows else 0.0,
        min_value=float(np.min(values)) if rows else 0.0,
        average_value=float(np.mean(values)) if rows else 0.0,
        rank=1 + sum(1 for row in rows if row.value > current_value),
        total=len(rows) + 1,
    )


# Tabular export

def records_to_dataframe(records: Iterable[Record], fields: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Records as a DataFrame with numeric columns parsed via parse_or_zero.

    Args:
        records: Raw records
        fields: Numeric fields to include. Defaults to RECORD_NUMERIC_FIELDS.
    """
    fields = fields or RECORD_NUMERIC_FIELDS
    rows = []
    for record in records:
        row = {name: record.get(name, '') for name in RECORD_IDENTITY_FIELDS}
        row.update({name: parse_or_zero(record.get(name)) for name in fields})
        rows.append(row)
    return pd.DataFrame(rows, columns=RECORD_IDENTITY_FIELDS + list(fields))


def trend_series_to_dataframe(series: Sequence[TrendPoint]) -> pd.DataFrame:
    """One row per trend point: period, fin_year, month and a column per metric."""
    columns = ['period', 'fin_year', 'month'] + list(TREND_METRICS)
    return pd.DataFrame(
        [{'period': p.period, 'fin_year': p.fin_year, 'month': p.month, **p.values} for p in series],
        columns=columns,
    )


def comparison_to_dataframe(result: ComparisonResult) -> pd.DataFrame:
    """Comparison rows as a DataFrame, highest value first."""
    return pd.DataFrame(
        [{'district': r.district, 'value': r.value, 'difference': r.difference,
          'percentage_diff': r.percentage_diff, 'status': r.status} for r in result.rows],
        columns=['district', 'value', 'difference', 'percentage_diff', 'status'],
    )


def load_sample_data() -> Dict[str, Any]:
    """
    A one-record API response for offline demos and tests.

    Returns:
        Dictionary shaped like the upstream response, with a 'records' list
    """
    return {
        'title': 'District-wise MGNREGA Data at a Glance',
        'source': 'data.gov.in',
        'status': 'ok',
        'total': 1,
        'count': 1,
        'limit': '10',
        'offset': '0',
        'records': [
            {
                'fin_year': '2024-2025',
                'month': 'Dec',
                'state_code': '17',
                'state_name': 'MADHYA PRADESH',
                'district_code': '1752',
                'district_name': 'SAMPLE DISTRICT',
                'Approved_Labour_Budget': '1078289',
                'Average_Wage_rate_per_day_per_person': '245.41',
                'Average_days_of_employment_provided_per_Household': '43',
                'Differently_abled_persons_worked': '118',
                'Material_and_skilled_Wages': '1786.85',
                'Number_of_Completed_Works': '2640',
                'Number_of_GPs_with_NIL_exp': '0',
                'Number_of_Ongoing_Works': '3943',
                'Persondays_of_Central_Liability_so_far': '741282',
                'SC_persondays': '82041',
                'SC_workers_against_active_workers': '7639',
                'ST_persondays': '65379',
                'ST_workers_against_active_workers': '7496',
                'Total_Adm_Expenditure': '278.06',
                'Total_Exp': '3884.10',
                'Total_Households_Worked': '17219',
                'Total_Individuals_Worked': '24607',
                'Total_No_of_Active_Job_Cards': '37337',
                'Total_No_of_Active_Workers': '63430',
                'Total_No_of_HHs_completed_100_Days_of_Wage_Employment': '11',
                'Total_No_of_JobCards_issued': '46280',
                'Total_No_of_Workers': '78026',
                'Total_No_of_Works_Takenup': '6583',
                'Wages': '1819.19',
                'Women_Persondays': '288446',
                'percent_of_Category_B_Works': '63',
                'percent_of_Expenditure_on_Agriculture_Allied_Works': '36.53',
                'percent_of_NRM_Expenditure': '54.94',
                'percentage_payments_gererated_within_15_days': '99.92',
                'Remarks': 'NA',
            }
        ],
    }
