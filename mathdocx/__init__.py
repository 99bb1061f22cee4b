# mathdocx/__init__.py
