import importlib
import sys
from pathlib import Path


def test_circular_dependencies():
    """Test if modules can be imported without circular dependencies"""
    # Base directory for pgenum package
    base_dir = Path('src')

    # Add src to path so imports work
    sys.path.insert(0, str(base_dir.parent))

    # List of all modules to test in dependency order
    modules = [
        # Independent modules (no internal deps)
        'pgenum.exceptions',
        'pgenum.sql',
        'pgenum.utils',

        # Codec and its adapters
        'pgenum.codec',
        'pgenum.adapters',
        'pgenum.adapters.type_conversion',
        'pgenum.adapters.type_mapping',

        # SQLAlchemy type and DDL helpers
        'pgenum.sqltype',
        'pgenum.schema',

        # Options, cursor and connection
        'pgenum.options',
        'pgenum.cursor',
        'pgenum.connection',
        'pgenum.transaction',

        # Main package
        'pgenum',
    ]

    results = {}
    for module in modules:
        print(f'Checking {module}... ', end='')
        try:
            importlib.import_module(module)
            print('OK')
            results[module] = True
        except Exception as e:
            print(f'Failed: {e}')
            results[module] = False

    success = sum(1 for v in results.values() if v)
    total = len(results)
    print(f'\nSummary: {success}/{total} modules imported successfully')

    failures = [m for m, v in results.items() if not v]
    if failures:
        print('\nFailed modules:')
        for module in failures:
            print(f'  - {module}')

    assert success == total, f'{len(failures)} modules failed circular dependency check'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
