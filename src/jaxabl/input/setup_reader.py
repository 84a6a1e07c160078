import operator
from typing import Any, Dict, List, Tuple

NUMERICAL_CONDITIONS = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}

def get_path_to_key(*keys: str) -> str:
    return "/".join(keys)

def get_setup_value(
        setup: str,
        setup_dict: Dict,
        key: str,
        absolute_path: str,
        possible_data_types: Tuple,
        is_optional: bool,
        default_value: Any = None,
        possible_string_values: Tuple[str] = None,
        numerical_value_condition: Tuple = None,
        ) -> Any:
    """Reads a single key of a setup section. Missing
    or None values of optional keys fall back to the
    default value, which is not checked. Present values
    are checked for their type, the allowed strings and
    the numerical condition.

    :param setup: Setup name used in error messages, e.g., "abl_postprocessing"
    :type setup: str
    :param setup_dict: Setup section
    :type setup_dict: Dict
    :param key: Key to be read
    :type key: str
    :param absolute_path: Path of the key used in error messages
    :type absolute_path: str
    :param possible_data_types: Type or tuple of types of the value
    :type possible_data_types: Tuple
    :param is_optional: Whether the key may be missing
    :type is_optional: bool
    :param default_value: Value of a missing optional key, defaults to None
    :type default_value: Any, optional
    :param possible_string_values: Allowed values of str values, defaults to None
    :type possible_string_values: Tuple[str], optional
    :param numerical_value_condition: (operator, bound), e.g., (">", 0.0), defaults to None
    :type numerical_value_condition: Tuple, optional
    :return: Setup value
    :rtype: Any
    """
    setup_value = setup_dict.get(key)
    if setup_value is None:
        assert_string = (
            f"Consistency error in {setup:s} setup. "
            f"Key {key:s} is not optional, but missing {absolute_path:s}.")
        assert is_optional, assert_string
        return default_value

    is_bool = isinstance(setup_value, bool)
    assert_string = (
        f"Consistency error in {setup:s} setup. "
        f"Key {absolute_path} must be of types {possible_data_types}, "
        f"but is of type {type(setup_value)}.")
    # bool is a subclass of int
    assert isinstance(setup_value, possible_data_types) \
        and (not is_bool or bool in _as_tuple(possible_data_types)), assert_string

    if isinstance(setup_value, str) and possible_string_values is not None:
        assert_string = (
            f"Consistency error in {setup:s} setup. "
            f"Value {setup_value} of {absolute_path:s} is not in {possible_string_values}.")
        assert setup_value in possible_string_values, assert_string

    is_number = isinstance(setup_value, (int, float)) and not is_bool
    if is_number and numerical_value_condition is not None:
        check_numerical_condition(setup, absolute_path, setup_value,
                                  numerical_value_condition)

    return setup_value

def get_setup_list(
        setup: str,
        setup_dict: Dict,
        key: str,
        absolute_path: str,
        possible_item_types: Tuple,
        is_optional: bool,
        default_value: List = None,
        is_unique: bool = False,
        length: int = None,
        ) -> Tuple:
    """Retrieves a list from the setup dictionary
    and checks that it is non-empty, that every item
    is of possible type and optionally that
    the items are unique and the list has
    the given length. Returns a tuple.

    :return: The setup list
    :rtype: Tuple
    """
    setup_list = get_setup_value(
        setup, setup_dict, key, absolute_path, (list, tuple),
        is_optional, default_value)
    if setup_dict.get(key) is None:
        return None if setup_list is None else tuple(setup_list)

    assert_string = (
        f"Consistency error in {setup:s} setup. "
        f"List {absolute_path:s} must not be empty.")
    assert len(setup_list) > 0, assert_string

    for item in setup_list:
        assert_string = (
            f"Consistency error in {setup:s} setup. "
            f"Items of {absolute_path:s} must be of types {possible_item_types}, "
            f"but item {item} is of type {type(item)}.")
        assert isinstance(item, possible_item_types) \
            and not isinstance(item, bool), assert_string

    if is_unique:
        assert_string = (
            f"Consistency error in {setup:s} setup. "
            f"Items of {absolute_path:s} must be unique.")
        assert len(set(setup_list)) == len(setup_list), assert_string

    if length is not None:
        assert_string = (
            f"Consistency error in {setup:s} setup. "
            f"List {absolute_path:s} must have {length:d} items, "
            f"but has {len(setup_list):d}.")
        assert len(setup_list) == length, assert_string

    return tuple(setup_list)

def check_numerical_condition(
        setup: str,
        absolute_path: str,
        setup_value: float,
        numerical_value_condition: Tuple
        ) -> None:
    condition, value = numerical_value_condition
    if condition not in NUMERICAL_CONDITIONS:
        raise NotImplementedError
    assert_string = (
        f"Consistency error in {setup:s} setup. "
        f"Value of {absolute_path} must be {condition:s} {str(value):s}.")
    flag = NUMERICAL_CONDITIONS[condition](setup_value, value)
    assert flag, assert_string

def _as_tuple(data_types) -> Tuple:
    if isinstance(data_types, tuple):
        return data_types
    return (data_types,)
