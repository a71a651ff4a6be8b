"""
Core Package.

Contains the migration logic:
- Builder type classification and IR recognition
- Rewrite rule registry and rewriters
- Source stitching
- The migration engine and its diagnostics
"""
