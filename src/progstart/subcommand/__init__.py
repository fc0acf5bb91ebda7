# Every module of this package is imported here. main.py builds its subcommand
# table from SubcommandBase.__subclasses__(), which only knows about subclasses
# whose defining module has been imported, so adding a subcommand is just a
# matter of dropping a new module into this package.

import pkgutil
import importlib

for m in pkgutil.iter_modules(__path__):
    importlib.import_module(f"{__name__}.{m.name}")
