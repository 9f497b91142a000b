"""
Builders for TACo access conditions.

Conditions are plain dicts in TACo's condition lingo. A condition without a
``chain`` gets the domain default chain when it is encrypted.
"""

from typing import Any, Dict, Iterable, List, Optional

from fileverse_agents.errors import ValidationError
from fileverse_agents.taco import USER_ADDRESS_PARAM

COMPARATORS = ("==", "!=", ">", ">=", "<", "<=")
COMPOUND_OPERATORS = ("and", "or", "not")


def _return_value_test(comparator: str, value: Any) -> Dict[str, Any]:
    if comparator not in COMPARATORS:
        raise ValidationError(
            f"Invalid comparator {comparator!r}. Options: {', '.join(COMPARATORS)}"
        )
    return {"comparator": comparator, "value": value}


def _with_chain(condition: Dict[str, Any], chain: Optional[int]) -> Dict[str, Any]:
    if chain is not None:
        if isinstance(chain, bool) or not isinstance(chain, int):
            raise ValidationError("Condition chain must be an integer chain id")
        condition["chain"] = chain
    return condition


def rpc_condition(
    method: str,
    parameters: Iterable[Any],
    comparator: str,
    value: Any,
    chain: Optional[int] = None,
) -> Dict[str, Any]:
    """Condition on the result of a JSON-RPC call, e.g. ``eth_getBalance``."""
    if not method:
        raise ValidationError("method is required for RPC conditions")

    condition = {
        "conditionType": "rpc",
        "method": method,
        "parameters": list(parameters),
        "returnValueTest": _return_value_test(comparator, value),
    }
    return _with_chain(condition, chain)


def contract_condition(
    contract_address: str,
    method: str,
    parameters: Iterable[Any],
    comparator: str,
    value: Any,
    chain: Optional[int] = None,
    standard_contract_type: Optional[str] = None,
    function_abi: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Condition on a contract view call.

    Either ``standard_contract_type`` (``ERC20``, ``ERC721``) or
    ``function_abi`` identifies how ``method`` is encoded.
    """
    if not contract_address:
        raise ValidationError("contractAddress is required for contract conditions")
    if not method:
        raise ValidationError("method is required for contract conditions")

    condition = {
        "conditionType": "contract",
        "contractAddress": contract_address,
        "method": method,
        "parameters": list(parameters),
        "returnValueTest": _return_value_test(comparator, value),
    }
    if standard_contract_type:
        condition["standardContractType"] = standard_contract_type
    if function_abi:
        condition["functionAbi"] = function_abi
    return _with_chain(condition, chain)


def time_condition(
    comparator: str, value: int, chain: Optional[int] = None, method: str = "blocktime"
) -> Dict[str, Any]:
    """Condition on the latest block timestamp."""
    condition = {
        "conditionType": "time",
        "method": method,
        "returnValueTest": _return_value_test(comparator, value),
    }
    return _with_chain(condition, chain)


def balance_condition(min_balance: int, chain: Optional[int] = None) -> Dict[str, Any]:
    """Requester's native balance (wei) must be at least ``min_balance``."""
    return rpc_condition(
        "eth_getBalance",
        [USER_ADDRESS_PARAM, "latest"],
        ">=",
        min_balance,
        chain=chain,
    )


def compound_condition(operator: str, operands: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Combine conditions with ``and``, ``or`` or ``not``."""
    if operator not in COMPOUND_OPERATORS:
        raise ValidationError(
            f"Invalid operator {operator!r}. Options: {', '.join(COMPOUND_OPERATORS)}"
        )

    operands = list(operands or [])
    if operator == "not" and len(operands) != 1:
        raise ValidationError("'not' takes exactly one operand")
    if operator != "not" and len(operands) < 2:
        raise ValidationError(f"'{operator}' needs at least two operands")

    return {"conditionType": "compound", "operator": operator, "operands": operands}


def _return_value_args(config: Dict[str, Any]):
    test = config.get("returnValueTest")
    if test is None and "comparator" in config:
        test = {"comparator": config["comparator"], "value": config.get("value")}
    if not isinstance(test, dict) or "comparator" not in test or "value" not in test:
        raise ValidationError("returnValueTest with comparator and value is required")
    return test["comparator"], test["value"]


def create_condition(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build a condition from a config dict.

    Args:
        config: ``{"type": "rpc"|"contract"|"time"|"compound", ...}`` using the
            condition-lingo field names (``contractAddress``, ``returnValueTest``)

    Raises:
        ValidationError: If the type is unknown or a required field is missing
    """
    if not isinstance(config, dict):
        raise ValidationError("Condition config must be a dict")

    condition_type = config.get("type") or config.get("conditionType")
    if not condition_type:
        raise ValidationError("Condition type is required")

    chain = config.get("chain")

    if condition_type == "rpc":
        comparator, value = _return_value_args(config)
        return rpc_condition(
            config.get("method"), config.get("parameters", []), comparator, value, chain
        )

    if condition_type == "contract":
        comparator, value = _return_value_args(config)
        return contract_condition(
            config.get("contractAddress"),
            config.get("method"),
            config.get("parameters", []),
            comparator,
            value,
            chain=chain,
            standard_contract_type=config.get("standardContractType"),
            function_abi=config.get("functionAbi"),
        )

    if condition_type == "time":
        comparator, value = _return_value_args(config)
        return time_condition(
            comparator, value, chain=chain, method=config.get("method") or "blocktime"
        )

    if condition_type == "compound":
        operands = [
            create_condition(operand)
            if isinstance(operand, dict) and "type" in operand
            else operand
            for operand in config.get("operands", [])
        ]
        return compound_condition(config.get("operator"), operands)

    raise ValidationError(f"Unsupported condition type: {condition_type}")
