"""Assemble marker and heat layer parameters and render them with folium."""
from __future__ import annotations

import html
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import folium
from folium.plugins import HeatMap

from spillmap.classify import (
    ASSET_SHAPE_PREFIXES,
    DEFAULT_SHAPE,
    MONITORING_TIERS,
    classify_color,
    classify_shape,
    match_asset_prefix,
)
from spillmap.config import (
    SATELLITE_ATTRIBUTION,
    SATELLITE_TILES,
    STREET_TILES,
    SpillMapConfig,
)
from spillmap.geo import ViewFrame, max_duration, view_frame
from spillmap.models import (
    CLASSIFICATION_FALLBACK,
    DEGENERATE_STATISTICS,
    Dataset,
    Diagnostic,
    SpillRecord,
)
from spillmap.normalize import spill_sizes

logger = logging.getLogger(__name__)

MARKERS_LAYER = 'Markers'
HEAT_LAYER = 'Heat'
STREET_LAYER = 'Street'
SATELLITE_LAYER = 'Satellite'

SHAPE_PATHS = {
    'circle': '<circle cx="50" cy="50" r="50" fill-opacity="{opacity}" fill="{fill}"></circle>',
    'down': '<path d="M0 0 L50 100 L100 0 Z" fill-opacity="{opacity}" fill="{fill}"></path>',
    'square': '<rect width="100" height="100" fill-opacity="{opacity}" fill="{fill}"></rect>',
    'up': '<path d="M50 0 L0 100 L100 100 Z" fill-opacity="{opacity}" fill="{fill}"></path>',
}


@dataclass(frozen=True)
class IconDescriptor:
    shape: str
    size_px: float
    color: str
    opacity: float = 0.85


@dataclass(frozen=True)
class MarkerSpec:
    lat: float
    lng: float
    icon: IconDescriptor
    popup_html: str
    record: SpillRecord


@dataclass(frozen=True)
class HeatLayerSpec:
    points: List[Tuple[float, float, float]]
    max_value: float
    radius: float
    blur: float
    min_opacity: float

    def weighted_points(self) -> List[List[float]]:
        """Points with weights scaled so the dataset maximum is full intensity."""
        if not math.isfinite(self.max_value) or self.max_value <= 0:
            return [[lat, lng, duration] for lat, lng, duration in self.points]
        return [[lat, lng, duration / self.max_value] for lat, lng, duration in self.points]


@dataclass(frozen=True)
class MapParameters:
    view: ViewFrame
    markers: List[MarkerSpec]
    heat: HeatLayerSpec
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def to_payload(self) -> Dict:
        return {
            'view': {'center': list(self.view.center), 'zoom': self.view.zoom},
            'markers': [
                {
                    'siteName': marker.record.site_name,
                    'assetType': marker.record.asset_type,
                    'lat': marker.lat,
                    'lng': marker.lng,
                    'shape': marker.icon.shape,
                    'sizePx': marker.icon.size_px,
                    'color': marker.icon.color,
                    'opacity': marker.icon.opacity,
                }
                for marker in self.markers
            ],
            'heat': {
                'max': _clean(self.heat.max_value),
                'radius': self.heat.radius,
                'blur': self.heat.blur,
                'minOpacity': self.heat.min_opacity,
                'data': [
                    {'lat': lat, 'lng': lng, 'spillsDuration': duration}
                    for lat, lng, duration in self.heat.points
                ],
            },
            'diagnostics': [diag.as_dict() for diag in self.diagnostics],
        }


def _clean(value: float) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return float(value)


def _display(value: float) -> str:
    if not math.isfinite(value):
        return 'n/a'
    return f"{value:g}"


def icon_descriptor(record: SpillRecord, size_px: float, opacity: float = 0.85) -> IconDescriptor:
    return IconDescriptor(
        shape=classify_shape(record.asset_type),
        size_px=size_px,
        color=classify_color(record.monitoring),
        opacity=opacity,
    )


def svg_markup(shape: str, size: float, color: str, opacity: float = 1.0) -> str:
    body = SHAPE_PATHS.get(shape, SHAPE_PATHS[DEFAULT_SHAPE]).format(opacity=opacity, fill=color)
    return (
        f'<svg width="{size:g}" height="{size:g}" viewBox="0 0 100 100" version="1.1" '
        f'preserveAspectRatio="none" xmlns="http://www.w3.org/2000/svg">{body}</svg>'
    )


def popup_html(record: SpillRecord) -> str:
    rows = [
        ('Site Name', record.site_name),
        ('Receiving Water', record.receiving_water),
        ('Spills duration (hrs)', _display(record.spills_duration)),
        ('Spills count', str(record.spills_count)),
        ('Monitoring', f"{_display(record.monitoring)}%"),
        ('Asset Type', record.asset_type),
    ]
    lines = ''.join(f"<p><b>{label}:</b> {html.escape(value)}</p>" for label, value in rows)
    return f"<div class='popup'>{lines}</div>"


def heat_layer(dataset: Dataset, config: SpillMapConfig) -> HeatLayerSpec:
    points = [
        (record.lat, record.lng, record.spills_duration)
        for record in dataset.records
        if record.has_location and math.isfinite(record.spills_duration)
    ]
    return HeatLayerSpec(
        points=points,
        max_value=max_duration(dataset),
        radius=config.heat_radius,
        blur=config.heat_blur,
        min_opacity=config.heat_min_opacity,
    )


def compose_map_parameters(dataset: Dataset, config: Optional[SpillMapConfig] = None) -> MapParameters:
    """Run sizing, classification and aggregation once over the dataset."""
    config = config or SpillMapConfig()
    sizes, stats = spill_sizes(dataset, config.size_range)
    diagnostics: List[Diagnostic] = []
    if stats.degenerate:
        diagnostics.append(
            Diagnostic(
                kind=DEGENERATE_STATISTICS,
                row=None,
                field='spills_duration',
                value=None,
                message=f"spill durations have no spread; all markers drawn at {config.mid_size:g} px",
            )
        )
    view = view_frame(dataset, config.zoom)
    markers: List[MarkerSpec] = []
    for record, size in zip(dataset.records, sizes):
        if match_asset_prefix(record.asset_type) is None:
            diagnostics.append(
                Diagnostic(
                    kind=CLASSIFICATION_FALLBACK,
                    row=record.row,
                    field='asset_type',
                    value=record.asset_type,
                    message=f"asset type {record.asset_type!r} matches no known prefix; drawn as {DEFAULT_SHAPE}",
                )
            )
        if not record.has_location:
            continue
        markers.append(
            MarkerSpec(
                lat=record.lat,
                lng=record.lng,
                icon=icon_descriptor(record, size, config.opacity),
                popup_html=popup_html(record),
                record=record,
            )
        )
    skipped = len(dataset) - len(markers)
    if skipped:
        logger.warning('%d record(s) without coordinates left off the map', skipped)
    fallbacks = Counter(diag.value for diag in diagnostics if diag.kind == CLASSIFICATION_FALLBACK)
    for asset_type, count in fallbacks.most_common():
        logger.warning('Asset type %r unmatched on %d record(s), using %s', asset_type, count, DEFAULT_SHAPE)
    return MapParameters(view=view, markers=markers, heat=heat_layer(dataset, config), diagnostics=diagnostics)


def _legend_html(config: SpillMapConfig) -> str:
    colors = ''.join(
        f"<span style='color:{color};'>&#9632;</span> {html.escape(label)}<br>"
        for label, color in MONITORING_TIERS
    )
    shapes = ''.join(
        f"{svg_markup(shape, 12, '#475569')} {html.escape(prefix)}<br>"
        for prefix, shape in ASSET_SHAPE_PREFIXES
    )
    size_min, size_max = config.size_range
    return f"""
    <div style="position: fixed; bottom: 24px; left: 12px; z-index: 1000; background: white;
                padding: 10px 14px; border-radius: 8px; box-shadow: 2px 2px 8px rgba(0,0,0,0.3);
                font-family: Arial, sans-serif; font-size: 12px; max-width: 300px;">
        <b>Storm overflow spills</b><br>
        {colors}
        <hr style="margin: 6px 0;">
        {shapes}
        <hr style="margin: 6px 0;">
        <span style="color: #555;">Marker size {size_min:g}&ndash;{size_max:g} px by spill duration</span>
    </div>
    """


def render_map(params: MapParameters, config: Optional[SpillMapConfig] = None) -> folium.Map:
    config = config or SpillMapConfig()
    m = folium.Map(location=list(params.view.center), zoom_start=params.view.zoom, tiles=None)
    folium.TileLayer(STREET_TILES, name=STREET_LAYER).add_to(m)
    folium.TileLayer(tiles=SATELLITE_TILES, attr=SATELLITE_ATTRIBUTION, name=SATELLITE_LAYER).add_to(m)

    markers_layer = folium.FeatureGroup(name=MARKERS_LAYER)
    for marker in params.markers:
        size = marker.icon.size_px
        folium.Marker(
            location=[marker.lat, marker.lng],
            icon=folium.DivIcon(
                html=svg_markup(marker.icon.shape, size, marker.icon.color, marker.icon.opacity),
                class_name='svg-icon',
                icon_size=(size, size),
                icon_anchor=(size / 2, size / 2),
            ),
            popup=folium.Popup(marker.popup_html, max_width=300),
            tooltip=marker.record.site_name or None,
        ).add_to(markers_layer)
    markers_layer.add_to(m)

    HeatMap(
        params.heat.weighted_points(),
        name=HEAT_LAYER,
        radius=params.heat.radius,
        blur=params.heat.blur,
        min_opacity=params.heat.min_opacity,
    ).add_to(m)

    folium.LayerControl(collapsed=False).add_to(m)
    m.get_root().html.add_child(folium.Element(_legend_html(config)))
    return m


def build_spill_map(dataset: Dataset, config: Optional[SpillMapConfig] = None) -> Tuple[folium.Map, MapParameters]:
    config = config or SpillMapConfig()
    params = compose_map_parameters(dataset, config)
    return render_map(params, config), params
