"""
ARK creature infographic service.

Loads the lookup tables produced by the ``extraction`` package and serves
rendered creature infographics over HTTP.
"""

__version__ = "0.1.0"
