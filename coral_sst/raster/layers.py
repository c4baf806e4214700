# coral_sst/raster/layers.py
"""Built-in presentation layers for pipeline outputs."""

from coral_sst.abstractions.types import LayerSpec
from coral_sst.processors.threshold_classifier import CLASS_COLORS, CLASS_LABELS

SST_LAYER = LayerSpec(
    name='Sea Surface Temperature',
    band='SST',
    value_range=(29.0, 33.0),
    palette=('577590', '43aa8b', '90be6d', 'f9c74f', 'f8961e', 'f3722c', 'f94144'),
)

SST_ANOMALY_LAYER = LayerSpec(
    name='Sea Surface Temperature Anomaly',
    band='SST_Anomaly',
    value_range=(-2.0, 2.0),
    palette=('283d3b', '197278', 'edddd4', 'c44536', '772e25'),
)

HEAT_STRESS_LAYER = LayerSpec(
    name='Coral Heat Stress',
    band='SST',
    value_range=(0.0, 1.0),
    palette=tuple(CLASS_COLORS[code].lstrip('#') for code in sorted(CLASS_COLORS)),
    class_labels=dict(CLASS_LABELS),
    visible=False,
)

SST_CHART = {
    'title': 'Sea Surface Temperature by Day of Year',
    'x_axis': 'Day of Year',
    'y_axis': 'SST (°C)',
}

MONTHLY_CHART = {
    'title': 'Monthly Mean Sea Surface Temperature and Anomaly',
    'x_axis': 'Month',
    'y_axis': 'SST (°C)',
}

THRESHOLD_CHART = {
    'title': 'SST and Bleaching Threshold',
    'x_axis': 'Date',
    'y_axis': 'SST (°C)',
}


def for_band(layer: LayerSpec, band: str) -> LayerSpec:
    """Copy of ``layer`` pointing at another band name."""
    return LayerSpec(
        name=layer.name,
        band=band,
        value_range=layer.value_range,
        palette=layer.palette,
        class_labels=dict(layer.class_labels),
        visible=layer.visible,
    )
