__version__ = "0.1"

from .edit import render, rewrite, template_fields, trim
from .errors import IOFailure, InvalidArgument, InvalidHost, InvalidScheme, MissingAuthority, NoPath, TemplateError, URLSyntaxError, URLToolError, UnbalancedArguments
from .parse import DEFAULT_PORTS, URL, parse, parse_reference, remove_dot_segments, resolve, serialize
from .query import decode, encode, format_listing, merge_params
