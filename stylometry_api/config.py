"""Load experiment settings from YAML files."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stylometry_api.api import Builder
from stylometry_api.errors import ConfigurationError

SETTINGS = {
    'problem_set', 'feature_driver', 'classifier', 'num_threads', 'num_folds',
    'analysis_mode', 'use_doc_titles', 'use_sparse', 'load_doc_contents', 'info_gain',
}


def _resolve(path: str, base_dir: Optional[Path]) -> str:
    p = Path(path)
    if base_dir is not None and not p.is_absolute():
        p = base_dir / p
    return str(p)


def builder_from_dict(data: Dict[str, Any], base_dir=None) -> Builder:
    """
    Create a Builder from a settings dictionary.

    Keys: problem_set (path), feature_driver (path), classifier (registered
    name), num_threads, num_folds, analysis_mode, use_doc_titles, use_sparse,
    load_doc_contents. ``info_gain`` is accepted for callers that apply it
    after preparation; it does not affect the Builder.

    Args:
        data: Settings
        base_dir: Directory that relative paths are resolved against

    Raises:
        ConfigurationError: On unknown keys or invalid values
    """
    unknown = sorted(set(data) - SETTINGS)
    if unknown:
        raise ConfigurationError(f"Unknown experiment settings: {unknown}")

    base_dir = Path(base_dir) if base_dir is not None else None
    builder = Builder()

    if data.get('problem_set') is not None:
        builder.problem_set_path(_resolve(data['problem_set'], base_dir))
    if data.get('feature_driver') is not None:
        builder.feature_driver_path(_resolve(data['feature_driver'], base_dir))
    if data.get('classifier') is not None:
        builder.classifier_name(str(data['classifier']))

    try:
        if 'num_threads' in data:
            builder.num_threads(int(data['num_threads']))
        if 'num_folds' in data:
            builder.num_folds(int(data['num_folds']))
        if 'analysis_mode' in data:
            builder.analysis_mode(data['analysis_mode'])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid experiment setting: {e}") from e

    for flag in ('use_doc_titles', 'use_sparse', 'load_doc_contents'):
        if flag in data:
            getattr(builder, flag)(bool(data[flag]))

    return builder


def load_experiment(path) -> Dict[str, Any]:
    """
    Read an experiment YAML file.

    Returns:
        Dictionary with keys:
        - builder: Builder configured from the file
        - info_gain: number of attributes to keep, or None
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read experiment file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Experiment file {path} must contain a mapping")

    return {
        'builder': builder_from_dict(data, base_dir=path.parent),
        'info_gain': data.get('info_gain'),
    }
