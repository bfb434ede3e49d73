#!/usr/bin/env python
"""Reformat module docstrings for use as command-line help.

Scripts in :mod:`sqlfeatures.bin` take their ``--help`` text from their
module docstrings. These are written in `reStructuredText`_ and `numpydoc`_
style, which reads poorly in a terminal. The functions here strip
substitutions, roles, link syntax, and directives, and cut the text at the
first `numpydoc`_ section header.
"""
import re

pyrst_pattern = re.compile(r"(?P<spacing>^|\s+)(?::(?P<domain>[^:`<>]+))?:(?P<role>[^:`]*):`~?(?P<argument>[^`<>]+)(?: +<(?P<pointer>[^`]+)>)?`")
"""Matches `reStructuredText`_ roles of the form ``:domain:role:`argument```
or ``:role:`argument```, preceded by whitespace or beginning a line"""

subst_pattern = re.compile(r"\|([^|]*)\|")
"""Matches `reStructuredText`_ substitutions of the form ``|substitution|``"""

link_pattern = re.compile(r"`([^`<>]+)( <[^`]+>)?`_")
"""Matches `reStructuredText`_ link references of the forms ```Linkname`_``
and ```Link text <url>`_``"""

directive_pattern = re.compile(r"^\s*\.\. [a-z-]+::.*\n(?:^[ \t]+:[a-z-]+:.*\n)*",re.M)
"""Matches `reStructuredText`_ directives (e.g. ``.. contents::``) and their options"""

_sections = ("Parameters",
             "Returns",
             "Yields",
             "Raises",
             "Attributes",
             "See also",
             "See Also",
            )

_separator = "\n" + (78*"-") + "\n"


def shorten_help(inp):
    """Remove `reStructuredText`_ markup from a docstring, and truncate it at
    the first `numpydoc`_ section header

    Parameters
    ----------
    inp : str
        Docstring

    Returns
    -------
    str
        Cleaned help text
    """
    inp = directive_pattern.sub("",inp)
    inp = pyrst_pattern.sub(r"\g<spacing>\g<argument>",inp)
    inp = subst_pattern.sub(r"\g<1>",inp)
    inp = link_pattern.sub(r"\g<1>",inp)

    stop = len(inp)
    for token in _sections:
        idx = inp.find("\n%s\n" % token)
        if idx != -1:
            stop = min(stop,idx)

    return inp[:stop].strip() + "\n"

def format_module_docstring(inp):
    """Format a module docstring as command-line help, surrounded by separators"""
    return _separator + "\n" + shorten_help(inp) + "\n" + _separator
