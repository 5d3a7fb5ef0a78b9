"""
Small helpers shared by the containers and writers.
"""
from phylofmt.utils.resources import RESOURCES, jit


# Functions ------------------------------------------------------------------------------------------------------------
def safe(name: str) -> str:
    """
    Makes a free-text name usable as a single whitespace-delimited token.

    Examples:
        >>> safe('Homo sapiens')
        'Homo_sapiens'
    """
    return name.replace(' ', '_')
