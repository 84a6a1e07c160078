import json
import os
from typing import Dict, Union

import yaml

SETUP_FILE_LOADERS = {
    ".json": json.load,
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
}


def read_setup_file(setup: Union[str, Dict], name: str) -> Dict:
    """Returns the setup dictionary. The setup is either
    a dictionary, which is returned as is, or the path
    to a json or yaml file.

    :param setup: Setup dictionary or path to a json/yaml file
    :type setup: Union[str, Dict]
    :param name: Setup name used in error messages
    :type name: str
    :return: Setup dictionary
    :rtype: Dict
    """
    if isinstance(setup, dict):
        return setup

    assert_string = (
        f"{name} must be a dictionary or a path to a json/yaml file, "
        f"but is of type {type(setup)}.")
    assert isinstance(setup, str), assert_string

    assert_string = (
        "Consistency error reading setup file. "
        f"{name} file {setup} does not exist.")
    assert os.path.isfile(setup), assert_string

    suffix = os.path.splitext(setup)[1].lower()
    if suffix not in SETUP_FILE_LOADERS:
        raise NotImplementedError(
            f"{name} file {setup} must be a json or yaml file.")

    with open(setup, "r") as file:
        setup_dict = SETUP_FILE_LOADERS[suffix](file)

    assert_string = f"{name} file {setup} does not contain a dictionary."
    assert isinstance(setup_dict, dict), assert_string
    return setup_dict
