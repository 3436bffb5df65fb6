"""
apibin schema definitions

The ``bases`` module holds the schemas of the books collection, the
``extra`` module the schemas of the echo and example endpoints. This
package also contains the ``config`` module, but it's not exported
by default, since it's currently only used internally.
"""

from .bases import *
from .errors import *
from .extra import *
