"""
Utilities for string interpolation using a variable lookup function.
"""
import re
from typing import Callable, Optional

LookupFn = Callable[[str], Optional[str]]


class EnvironmentInterpolator:
    """
    Utility for interpolating variables in strings.
    Supports $VAR, ${VAR}, ${VAR:-default}, ${VAR-default}, ${VAR:+value},
    ${VAR+value} and the $$ escape.
    """
    # Group 1: $$ escape
    # Group 2: VAR name in braces, group 3: modifier, group 4: alternative
    # Group 5: bare VAR name
    PATTERN = re.compile(
        r'(\$\$)'
        r'|\$\{([A-Za-z_][A-Za-z0-9_]*)(?:(:?[-+])([^}]*))?\}'
        r'|\$([A-Za-z_][A-Za-z0-9_]*)'
    )

    @classmethod
    def interpolate(cls, template: str, lookup: LookupFn) -> str:
        """
        Interpolates variables in the template string using the lookup function.

        :param template: The string containing $VAR or ${VAR} placeholders.
        :param lookup: Returns the value of a variable, or None when it is not set.
        :return: The interpolated string. Unknown variables expand to an empty string.
        """
        def replace(match):
            """
            Internal replacement function for re.sub.
            """
            if match.group(1):
                return '$'
            var_name = match.group(2) or match.group(5)
            modifier = match.group(3)  # None, '-', ':-', '+' or ':+'
            alt_value = match.group(4) or ''

            value = lookup(var_name)

            if modifier == ':-':
                # use default if VAR is unset or empty
                return value if value else cls.interpolate(alt_value, lookup)
            if modifier == '-':
                return value if value is not None else cls.interpolate(alt_value, lookup)
            if modifier == ':+':
                return cls.interpolate(alt_value, lookup) if value else ''
            if modifier == '+':
                return cls.interpolate(alt_value, lookup) if value is not None else ''
            return value if value is not None else ''

        return cls.PATTERN.sub(replace, template)
