from typing import Any, Dict

import h5py


def load_dict_from_h5(load_path: str) -> Dict:
    """Loads an h5 file into a nested dictionary.
    Groups become dictionaries, datasets become arrays
    or scalars, and attributes are stored next to
    the datasets of their group. The .h5 suffix may
    be omitted.

    :param load_path: Path to the h5 file
    :type load_path: str
    :return: Contents of the h5 file
    :rtype: Dict
    """
    if not load_path.endswith(".h5"):
        load_path += ".h5"
    with h5py.File(load_path, "r") as h5file:
        return load_from_grp_to_dict(h5file)

def load_from_grp_to_dict(grp: h5py.Group) -> Dict:
    contents = {key: _decode(value) for key, value in grp.attrs.items()}
    for key, item in grp.items():
        if isinstance(item, h5py.Group):
            contents[key] = load_from_grp_to_dict(item)
        elif item.ndim == 0:
            contents[key] = _decode(item[()])
        else:
            contents[key] = item[:]
    return contents

def _decode(value: Any) -> Any:
    return value.decode("utf-8") if isinstance(value, bytes) else value
