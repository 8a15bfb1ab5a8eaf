"""
Parsers for .env files, expanding variable references while reading.
"""
import io
import re
from typing import Dict, Optional

from dotenv.parser import parse_stream

from ..UTILS.string_interpolation import EnvironmentInterpolator, LookupFn

VARIABLE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")


class EnvFileParser:
    """
    Parser for .env files.

    Quoting, comments and ``export`` prefixes are handled by python-dotenv.
    References such as ``${HOST}`` are expanded against the variables defined
    earlier in the same file first, then against the lookup function.
    """
    @classmethod
    def parse(cls, env_path: str, lookup: Optional[LookupFn] = None) -> Dict[str, str]:
        """
        Parses an .env file from a path.

        :param env_path: Path to the .env file.
        :param lookup: Resolves variables the file does not define itself.
        :return: Variables in file order.
        :raises ValueError: If a statement cannot be parsed.
        """
        with open(env_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return cls.parse_from_string(content, lookup)

    @classmethod
    def parse_from_string(cls, content: str, lookup: Optional[LookupFn] = None) -> Dict[str, str]:
        """
        Parses environment variables from a string.

        :raises ValueError: On a malformed statement or an invalid variable name.
        """
        env: Dict[str, str] = {}

        def resolve(name: str) -> Optional[str]:
            value = env.get(name)
            if value is not None:
                return value
            return lookup(name) if lookup else None

        for binding in parse_stream(io.StringIO(content)):
            line = binding.original.line
            if binding.error:
                raise ValueError(f"could not parse statement starting at line {line}")
            key = binding.key
            if key is None:
                continue
            if not VARIABLE_NAME.fullmatch(key):
                raise ValueError(f"invalid variable name {key!r} at line {line}")
            if binding.value is None:
                # A bare KEY is inherited from the lookup, or dropped.
                inherited = lookup(key) if lookup else None
                if inherited is not None:
                    env[key] = inherited
                continue
            env[key] = EnvironmentInterpolator.interpolate(binding.value, resolve)
        return env
