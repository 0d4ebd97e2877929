"""
Top-level package for the WordPress → Sanity migration utility.

This package bundles the components required to read WordPress exports,
convert HTML bodies to Sanity block content, resolve embedded media against
a local copy of the uploads directory and prepare the migration artifact
consumed by the Sanity importer.  Modules are split into subpackages:

* :mod:`wp2sanity.models` – block content and Sanity document models
* :mod:`wp2sanity.extractors` – helpers to parse CSV or XML exports
* :mod:`wp2sanity.parsers` – HTML to block content converters and renderer
* :mod:`wp2sanity.migrators` – WordPress record → Sanity document mapping
* :mod:`wp2sanity.utils` – logging, event reports and the missing-media CSV

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`wp2sanity.migration_tool`.
"""

__version__ = "0.1.0"
