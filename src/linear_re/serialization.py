from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from .results import LinearRationalExpectationsResults

Array = np.ndarray


def save_results(results: LinearRationalExpectationsResults, path: str | Path) -> None:
    target = Path(path)
    payload = {
        "n_endogenous": int(results.n_endogenous),
        "n_exogenous": int(results.n_exogenous),
        "n_backward": int(results.n_backward),
        "eigenvalues_real": _to_list(np.real(results.eigenvalues)),
        "eigenvalues_imag": _to_list(np.imag(results.eigenvalues)),
        "g1": _to_list(results.g1),
        "gs1": _to_list(results.gs1),
        "hs1": _to_list(results.hs1),
        "gns1": _to_list(results.gns1),
        "hns1": _to_list(results.hns1),
        "endogenous_variance": _to_list(results.endogenous_variance),
        "stationary_variables": [bool(v) for v in results.stationary_variables],
    }
    target.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def load_results(path: str | Path) -> LinearRationalExpectationsResults:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    results = LinearRationalExpectationsResults(
        int(payload["n_endogenous"]), int(payload["n_exogenous"]), int(payload["n_backward"])
    )
    results.eigenvalues = _to_array(payload["eigenvalues_real"]) + 1j * _to_array(
        payload["eigenvalues_imag"]
    )
    # g1 is filled in place so that g1_1 and g1_2 keep viewing it
    results.g1[...] = _to_array(payload["g1"]).reshape(results.g1.shape)
    for name in ("gs1", "hs1", "gns1", "hns1", "endogenous_variance"):
        target = getattr(results, name)
        target[...] = _to_array(payload[name]).reshape(target.shape)
    results.stationary_variables[...] = np.asarray(payload["stationary_variables"], dtype=bool)
    return results


def _to_list(array: Array) -> Any:
    return np.asarray(array, dtype=float).tolist()


def _to_array(value: Any) -> Array:
    return np.asarray(value, dtype=float)
