"""Explains references to classes, functions, names or modules that cannot be resolved."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, compile_patterns

_PHP_KINDS = {"class", "interface", "trait", "function", "method"}


class SymbolNotFoundStrategy(PatternStrategy):
    """Handles errors like:

    - ``Class "App\\Models\\User" not found``
    - ``Call to undefined function helper()``
    - ``name 'np' is not defined``
    - ``No module named 'requests'``
    - ``cannot import name 'foo' from 'pkg'``
    """

    strategy_name = "SymbolNotFound"
    _patterns = compile_patterns(
        (r"""Class ["']?(?P<name>[^"']+)["']? not found""", "class"),
        (r"""Interface ["']?(?P<name>[^"']+)["']? not found""", "interface"),
        (r"""Trait ["']?(?P<name>[^"']+)["']? not found""", "trait"),
        (r"Call to undefined function (?P<name>[\w\\]+)\(\)", "function"),
        (r"Call to undefined method (?P<name>[\w\\]+::\w+)\(\)", "method"),
        (r"name '(?P<name>\w+)' is not defined", "name"),
        (
            r"cannot access local variable '(?P<name>\w+)'"
            r"|local variable '(?P<legacy>\w+)' referenced before assignment",
            "unbound",
        ),
        (r"No module named '(?P<name>[\w.]+)'", "module"),
        (r"cannot import name '(?P<name>\w+)' from '(?P<module>[\w.]+)'", "import_name"),
        (r"module '(?P<module>[\w.]+)' has no attribute '(?P<name>\w+)'", "module_attribute"),
    )

    def supports(self, context: RuntimeContext) -> bool:
        message = context.exception.message
        if self._matches_any(message):
            return True
        return "not found" in message and any(
            kind in message for kind in ("Class", "Interface", "Trait")
        )

    def explain(self, context: RuntimeContext) -> Explanation:
        found = self._match(context.exception.message)
        if found is None:
            subtype, name, module = "class", "Unknown", None
        else:
            subtype, match = found
            groups = match.groupdict()
            name = groups.get("name") or groups.get("legacy") or "Unknown"
            module = groups.get("module")

        return self._explanation(
            context,
            cause=self._cause(subtype, name, module),
            suggestions=self._suggestions(subtype, name, module),
        )

    def _cause(self, subtype: str, name: str, module: str | None) -> str:
        if subtype in ("class", "interface", "trait"):
            return (
                f"PHP cannot find the {subtype} `{name}`. This usually means the {subtype} "
                f"file hasn't been loaded, the namespace is incorrect, or there's a typo in "
                f"the {subtype} name."
            )
        if subtype == "function":
            return (
                f"PHP cannot find the function `{name}()`. It is either not defined, "
                "defined in a file that was never included, or misspelled."
            )
        if subtype == "method":
            return f"The method `{name}()` does not exist on that class."
        if subtype == "name":
            return (
                f"Python cannot resolve the name `{name}` at this point. It was never assigned "
                "or imported in this scope, or it is misspelled."
            )
        if subtype == "unbound":
            return (
                f"The local variable `{name}` is read before any value was assigned to it. "
                "Assigning to a name anywhere in a function makes it local to the whole function."
            )
        if subtype == "module":
            return (
                f"The module `{name}` cannot be imported. The distribution that provides it "
                "is not installed in the active environment, or the module path is wrong."
            )
        if subtype == "import_name":
            return (
                f"The module `{module}` was imported but does not define `{name}`. The name may "
                "have been renamed or removed, or a circular import left the module only "
                "partially initialized."
            )
        return f"The module `{module}` has no attribute `{name}`."

    def _suggestions(self, subtype: str, name: str, module: str | None) -> list[str]:
        suggestions: list[str] = []

        if subtype in _PHP_KINDS:
            if "\\" in name:
                suggestions.append(
                    "Verify the namespace is correct and matches the directory structure"
                )
                suggestions.append("Check that the file exists at the expected PSR-4 autoload path")
            else:
                suggestions.append("Add the correct `use` statement at the top of the file")
                suggestions.append("Use the fully qualified class name with namespace")

            suggestions.append("Run `composer dump-autoload` to regenerate the autoloader")
            suggestions.append("Verify the class file exists and has the correct class name")
            suggestions.append(
                "Check for typos in the class name "
                "(PHP class names are case-insensitive but file systems may not be)"
            )
            if "Test" in name or "Mock" in name:
                suggestions.append(
                    "This might be a test class - "
                    "ensure dev dependencies are installed with `composer install`"
                )
            return suggestions

        if subtype == "name":
            suggestions.append(f"Check the spelling of `{name}` and that it is defined before use")
            suggestions.append(f"Add the missing import if `{name}` comes from another module")
        elif subtype == "unbound":
            suggestions.append(f"Assign `{name}` on every code path before it is read")
            suggestions.append(
                f"If `{name}` is meant to be the module-level variable, "
                f"declare it with `global {name}` or pass it in as a parameter"
            )
        elif subtype == "module":
            top_level = name.split(".")[0]
            suggestions.append(
                f"Install the distribution that provides `{top_level}` in the active environment"
            )
            suggestions.append(
                "Verify the interpreter in use belongs to the virtual environment you installed into"
            )
            suggestions.append(
                f"Check for a local file or directory named `{top_level}` that shadows the package"
            )
        else:
            suggestions.append(
                f"Check that `{name}` still exists in `{module}` for the installed version"
            )
            suggestions.append(f"Look for a circular import between this module and `{module}`")
            suggestions.append(
                f"Check for a local file named like `{module}` that shadows the real module"
            )

        return suggestions
