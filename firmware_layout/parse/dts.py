"""
Helper module to read ZMK keymap-like DT syntax into a tree of nodes, keeping track of
"compatible" values, with utilities to extract properties from nodes.

The implementation is based on a nested expression parser for curly braces through pyparsing,
with comments stripped and the C preprocessor optionally run using pcpp. Input that is cut off
is closed at the end of the text, so that partial keymaps can still be read.
"""

import logging
import re
from collections import defaultdict
from io import StringIO
from itertools import chain

import pyparsing as pp
from pcpp.preprocessor import Action, OutputDirective, Preprocessor  # type: ignore

logger = logging.getLogger(__name__)


class DTNode:
    """Class representing a DT node with helper methods to extract fields."""

    name: str
    label: str | None
    content: str
    children: list["DTNode"]

    def __init__(self, name: str, parse: pp.ParseResults):
        """
        Initialize a node from its name (which may be in the form of `label:name`)
        and `parse` which contains the node itself.
        """

        if ":" in name:
            self.label, self.name = name.split(":", maxsplit=1)
        else:
            self.label, self.name = None, name

        self.content = " ".join(elt for elt in parse if isinstance(elt, str))
        self.children = [
            DTNode(name=elt_p, parse=elt_n)
            for elt_p, elt_n in zip(parse[:-1], parse[1:])
            if isinstance(elt_p, str) and isinstance(elt_n, pp.ParseResults)
        ]

    def get_string(self, property_re: str) -> str | None:
        """Extract last defined value for a `string` type property matching the `property_re` regex."""
        out = None
        for m in re.finditer(rf'{property_re} = "(.*?)"', self.content):
            out = m.group(1)
        return out

    def get_array(self, property_re: str) -> list[str] | None:
        """Extract last defined values for a `array` type property matching the `property_re` regex."""
        out = None
        for m in re.finditer(rf"{property_re} = <(.*?)>(, <(.*?)>)*", self.content):
            fields = [m.group(1)] + [field for field in m.groups()[2:] if field is not None]
            out = list(chain.from_iterable(field.split() for field in fields))
        return out


class DeviceTree:
    """
    Class that parses a DTS string (optionally preprocessed by the C preprocessor)
    and represents it as a DT tree, with some helpful methods.
    """

    _nodelabel_re = re.compile(r"([\w-]+) *: *([\w-]+) *{")
    _assignment_re = re.compile(r"\s*=\s*")
    _directive_re = re.compile(r"^\s*#.*?$", flags=re.MULTILINE)
    _compatible_re = re.compile(r'compatible = "(.*?)"')
    _comment_stripper = pp.quoted_string | pp.cpp_style_comment.suppress()

    def __init__(self, in_str: str, file_name: str | None = None, preprocess: bool = True):
        """
        Given an input DTS string `in_str` and `file_name` it is read from, parse it into an internal
        tree representation and track what "compatible" value each node has.
        """
        prepped = self._preprocess(in_str, file_name) if preprocess else in_str
        prepped = self._comment_stripper.transform_string(prepped)
        prepped = self._directive_re.sub("", prepped)

        # glue node labels to names and normalize assignments, then close any nodes left open
        prepped = self._assignment_re.sub(" = ", self._nodelabel_re.sub(r"\1:\2 {", prepped))
        if (n_open := prepped.count("{") - len(re.findall(r"}\s*;", prepped))) > 0:
            logger.warning("found %d unclosed nodes in %s, closing them at the end", n_open, file_name)
            prepped += " };" * n_open

        try:
            parsed = pp.nested_expr("{", "};").parse_string("{ " + prepped + " };")[0]
        except pp.ParseBaseException as err:
            logger.warning("could not read node structure of %s: %s", file_name, err)
            parsed = pp.ParseResults()
        self.root = DTNode("ROOT", parsed)

        # parse through all nodes and hash according to "compatible" values
        self.compatibles: defaultdict[str, list[DTNode]] = defaultdict(list)

        def assign_compatibles(node: DTNode) -> None:
            if m := self._compatible_re.search(node.content):
                self.compatibles[m.group(1)].append(node)
            for child in node.children:
                assign_compatibles(child)

        assign_compatibles(self.root)

    @staticmethod
    def _preprocess(in_str: str, file_name: str | None = None) -> str:
        def include_handler(*args):  # type: ignore
            raise OutputDirective(Action.IgnoreAndPassThrough)

        preprocessor = Preprocessor()
        preprocessor.line_directive = None
        preprocessor.on_include_not_found = include_handler
        preprocessor.parse(in_str, source=file_name)
        with StringIO() as f_out:
            preprocessor.write(f_out)
            return f_out.getvalue()

    def get_compatible_nodes(self, compatible_value: str) -> list[DTNode]:
        """Return a list of nodes that have the given compatible value."""
        return self.compatibles[compatible_value]

    def get_named_nodes(self, name: str) -> list[DTNode]:
        """Return a list of nodes with the given name, in document order."""
        out = []

        def collect(node: DTNode) -> None:
            if node.name == name:
                out.append(node)
            for child in node.children:
                collect(child)

        collect(self.root)
        return out
