"""
Declaration-level edits against a parsed stylesheet.
"""

from typing import Optional

from alara.exceptions import TransformFailure
from alara.logging_config import logger
from alara.schemas import ErrorCode
from alara.styles.serializer import style_values_close, to_value
from alara.styles.stylesheet import (
    Rule,
    Stylesheet,
    find_rule,
    find_rule_at_line,
    get_style_value,
    remove_declaration,
    set_style_value,
)
from alara.styles.values import StyleValue
from .config import MUTATION_CONFIG


def resolve_rule(sheet: Stylesheet, selector: str, line: Optional[int] = None) -> Rule:
    """
    Find the rule for a selector, nearest to `line` when one is given.

    Raises:
        TransformFailure: SELECTOR_NOT_FOUND, or PARSE_ERROR when the
            stylesheet has syntax errors and the rule could not be found
    """
    if line is not None:
        rule = find_rule_at_line(sheet, selector, line, MUTATION_CONFIG["rule_line_tolerance"])
    else:
        rule = find_rule(sheet, selector)

    if rule is not None:
        return rule

    if sheet.has_error:
        raise TransformFailure(
            ErrorCode.PARSE_ERROR,
            f"Stylesheet has syntax errors and no rule matches '{selector}'",
            {"selector": selector},
        )
    raise TransformFailure(
        ErrorCode.SELECTOR_NOT_FOUND,
        f"No rule found for selector '{selector}'",
        {"selector": selector},
    )


def _check_prior(rule: Rule, property: str, prior_value: StyleValue) -> StyleValue:
    current = get_style_value(rule, property)
    if current is None:
        raise TransformFailure(
            ErrorCode.VALIDATION_ERROR,
            f"Property '{property}' is not declared in '{rule.selector}'",
            {"property": property, "selector": rule.selector},
        )
    if not style_values_close(current, prior_value):
        raise TransformFailure(
            ErrorCode.VALIDATION_ERROR,
            f"Value of '{property}' changed: expected '{to_value(prior_value)}', found '{to_value(current)}'",
            {
                "reason": "value-mismatch",
                "property": property,
                "expected": to_value(prior_value),
                "found": to_value(current),
            },
        )
    return current


def update_declaration(
    sheet: Stylesheet,
    selector: str,
    property: str,
    prior_value: StyleValue,
    new_value: StyleValue,
    line: Optional[int] = None,
) -> StyleValue:
    """
    Change an existing declaration after verifying its current value.

    Returns:
        The value that was replaced
    """
    rule = resolve_rule(sheet, selector, line)
    previous = _check_prior(rule, property, prior_value)
    set_style_value(rule, property, new_value)
    logger.debug(f"{selector} {{ {property}: {to_value(previous)} -> {to_value(new_value)} }}")
    return previous


def add_declaration(
    sheet: Stylesheet,
    selector: str,
    property: str,
    new_value: StyleValue,
    prior_value: Optional[StyleValue] = None,
    line: Optional[int] = None,
) -> Optional[StyleValue]:
    """
    Add a declaration, overwriting an existing one with the same property.

    A non-null prior_value must match the declaration being overwritten.

    Returns:
        The overwritten value, or None if the property was new
    """
    rule = resolve_rule(sheet, selector, line)
    if prior_value is not None:
        previous = _check_prior(rule, property, prior_value)
    else:
        previous = get_style_value(rule, property)
    set_style_value(rule, property, new_value)
    logger.debug(f"{selector} {{ +{property}: {to_value(new_value)} }}")
    return previous


def delete_declaration(
    sheet: Stylesheet,
    selector: str,
    property: str,
    prior_value: StyleValue,
    line: Optional[int] = None,
) -> StyleValue:
    """
    Remove a declaration after verifying its current value.

    Returns:
        The removed value
    """
    rule = resolve_rule(sheet, selector, line)
    previous = _check_prior(rule, property, prior_value)
    remove_declaration(rule, property)
    logger.debug(f"{selector} {{ -{property} }}")
    return previous
