"""
Visualization Module

Interactive Plotly charts for district trend series and comparisons.
"""

# Standard library imports
import os
import logging
from pathlib import Path
from typing import List, Optional, Sequence

# Third-party imports
import plotly.express as px
import plotly.graph_objects as go

# Local imports
from .data_processor import (
    METRICS,
    TREND_METRICS,
    ComparisonResult,
    TrendPoint,
    trend_series_to_dataframe,
)

# Constants
DEFAULT_CHART_THEME = 'plotly_white'
DEFAULT_CHART_HEIGHT = 600
DEFAULT_CHART_WIDTH = 1000
VALID_THEMES = ['plotly_white', 'plotly_dark', 'plotly', 'ggplot2', 'seaborn', 'simple_white']
VALID_FORMATS = ['html', 'png', 'svg', 'pdf']
CURRENT_DISTRICT_COLOR = '#2f9e44'
OTHER_DISTRICT_COLOR = '#74c0fc'

# Logger setup
logger = logging.getLogger(__name__)


class DistrictChartBuilder:
    """
    Builds charts for a district's trend series and comparison results.

    Attributes:
        theme (str): Plotly template
        height (int): Chart height in pixels
        width (int): Chart width in pixels

    Example:
        >>> charts = DistrictChartBuilder(theme='plotly_dark')
        >>> fig = charts.create_trend_chart(series, 'employment', 'PATNA')
        >>> charts.save_figure(fig, 'patna_employment', output_dir='./outputs')
    """

    def __init__(
        self,
        theme: Optional[str] = None,
        height: Optional[int] = None,
        width: Optional[int] = None
    ) -> None:
        """
        Args:
            theme: Plotly template from VALID_THEMES. Defaults to
                   DEFAULT_CHART_THEME or the environment variable of that name.
            height: Chart height, 200-2000 pixels. Defaults to CHART_HEIGHT.
            width: Chart width, 400-4000 pixels. Defaults to CHART_WIDTH.

        Raises:
            ValueError: If theme is unknown or dimensions are out of range
        """
        theme = theme or os.getenv('DEFAULT_CHART_THEME', DEFAULT_CHART_THEME)
        if theme not in VALID_THEMES:
            raise ValueError(f"Invalid theme '{theme}'. Valid options: {VALID_THEMES}")

        height = height or int(os.getenv('CHART_HEIGHT', str(DEFAULT_CHART_HEIGHT)))
        width = width or int(os.getenv('CHART_WIDTH', str(DEFAULT_CHART_WIDTH)))

        if not isinstance(height, int) or height < 200 or height > 2000:
            raise ValueError(f"Chart height must be between 200-2000 pixels, got {height}")

        if not isinstance(width, int) or width < 400 or width > 4000:
            raise ValueError(f"Chart width must be between 400-4000 pixels, got {width}")

        self.theme = theme
        self.height = height
        self.width = width
        self.logger = logging.getLogger(__name__)

    def create_trend_chart(
        self,
        series: Sequence[TrendPoint],
        metric: str,
        district_name: str = '',
        title: Optional[str] = None
    ) -> go.Figure:
        """
        Line chart of one metric over a trend series.

        Raises:
            ValueError: If the series is empty or metric is not a trend metric
        """
        if not series:
            raise ValueError("Trend series cannot be empty")
        if metric not in TREND_METRICS:
            raise ValueError(f"Unknown trend metric '{metric}'. Valid options: {list(TREND_METRICS)}")

        df = trend_series_to_dataframe(series)
        label = METRICS[TREND_METRICS[metric]].name

        fig = px.line(
            df,
            x='period',
            y=metric,
            title=title or f"{label} Trend{' - ' + district_name if district_name else ''}",
            labels={'period': 'Period', metric: label},
            markers=True,
            template=self.theme
        )
        fig.update_layout(height=self.height, width=self.width, hovermode='x unified')
        return fig

    def create_comparison_chart(
        self,
        result: ComparisonResult,
        title: Optional[str] = None
    ) -> go.Figure:
        """
        Horizontal bar chart of the current district against its comparison rows.

        The current district is highlighted; bars are ordered by value.
        """
        names: List[str] = [row.district for row in result.rows] + [result.current_district]
        values: List[float] = [row.value for row in result.rows] + [result.current_value]
        order = sorted(range(len(values)), key=lambda i: values[i])

        colors = [
            CURRENT_DISTRICT_COLOR if names[i] == result.current_district else OTHER_DISTRICT_COLOR
            for i in order
        ]
        label = METRICS[result.metric].name if result.metric in METRICS else result.metric

        fig = go.Figure(go.Bar(
            x=[values[i] for i in order],
            y=[names[i] for i in order],
            orientation='h',
            marker_color=colors,
        ))
        fig.add_vline(x=result.average_value, line_dash='dash', annotation_text='Average')
        fig.update_layout(
            title=title or f"{label}: {result.current_district} ranks {result.rank} of {result.total}",
            xaxis_title=label,
            template=self.theme,
            height=self.height,
            width=self.width,
        )
        return fig

    def save_figure(
        self,
        fig: go.Figure,
        filename: str,
        format: str = 'html',
        output_dir: Optional[str] = None
    ) -> Path:
        """
        Save figure to OUTPUT_DIR (or output_dir) and return the file path.

        Raises:
            ValueError: If format is not supported
        """
        if format not in VALID_FORMATS:
            raise ValueError(f"Unsupported format: {format}")

        directory = Path(output_dir or os.getenv('OUTPUT_DIR', './outputs'))
        directory.mkdir(parents=True, exist_ok=True)
        filepath = directory / f"{filename}.{format}"

        if format == 'html':
            fig.write_html(str(filepath))
        else:
            fig.write_image(str(filepath))

        self.logger.info(f"Figure saved to {filepath}")
        return filepath
