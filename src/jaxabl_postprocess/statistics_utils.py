import os
from typing import Dict, List

import numpy as np

from jaxabl_postprocess.h5py_utils import load_dict_from_h5


def load_abl_statistics(
        field: str,
        output_format: str = "abl_stats_%s.dat",
        save_path: str = ".",
        ) -> Dict[str, np.ndarray]:
    """Loads all records of one output field
    written by the ABL statistics.

    :param field: Output field, e.g., Ux, T, sfs or var
    :type field: str
    :param output_format: Output format of the ABL statistics, defaults to "abl_stats_%s.dat"
    :type output_format: str, optional
    :param save_path: Directory of the output files, defaults to "."
    :type save_path: str, optional
    :return: Dictionary with steps (S,), times (S,), utau (S,),
        heights (H,) and values (S,H,C)
    :rtype: Dict[str, np.ndarray]
    """
    filename = os.path.join(save_path, output_format % field)
    assert_string = f"Statistics file {filename} does not exist."
    assert os.path.isfile(filename), assert_string

    if filename.endswith(".h5"):
        records = _load_h5_records(filename)
    else:
        records = _load_dat_records(filename)

    records = sorted(records, key=lambda record: record["step"])
    statistics = {
        "steps": np.array([record["step"] for record in records], dtype=int),
        "times": np.array([record["time"] for record in records]),
        "utau": np.array([record["utau"] for record in records]),
        "heights": records[0]["heights"] if records else np.zeros(0),
        "values": np.stack([record["values"] for record in records]) if records else np.zeros((0,0,0)),
    }
    return statistics

def _load_dat_records(filename: str) -> List[Dict]:
    records = []
    with open(filename, "r") as file:
        for line in file:
            line = line.split()
            if not line:
                continue
            if line[0] == "#":
                header = dict(zip(line[1::2], line[2::2]))
                records.append({
                    "step": int(header["step"]),
                    "time": float(header["time"]),
                    "utau": float(header["utau"]),
                    "rows": []})
            else:
                records[-1]["rows"].append([float(value) for value in line])

    for record in records:
        rows = np.array(record.pop("rows"))
        record["heights"] = rows[:,0]
        record["values"] = rows[:,1:]
    return records

def _load_h5_records(filename: str) -> List[Dict]:
    h5_dict = load_dict_from_h5(filename)
    records = []
    for key, group in h5_dict.items():
        records.append({
            "step": int(key.split("_")[-1]),
            "time": float(group["time"]),
            "utau": float(group["utau"]),
            "heights": group["heights"],
            "values": group["values"]})
    return records
