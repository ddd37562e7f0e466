# Overview: Change notifications emitted by core operations after a successful commit.
#
# The presentation layer subscribes (e.g. product_changed.connect(refresh)) and decides
# when to re-render; the core never refreshes anything itself.

from blinker import Namespace

_signals = Namespace()

# kwargs: product_id, action ("created", "stock_adjusted", "manual_price", "renamed",
#         "quantity_set", "deleted")
product_changed = _signals.signal("product-changed")

# kwargs: bill_id, action ("saved", "returned", "item_returned", "deleted", "renamed")
bill_changed = _signals.signal("bill-changed")

# kwargs: month, year
snapshot_saved = _signals.signal("snapshot-saved")
