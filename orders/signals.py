# orders/signals.py
#
# order_status_changed is sent after an order's status was written.
# kwargs: order (fresh Order), previous (old status), actor (who did it).
#
# The lifecycle engine and the sweeper write with QuerySet.update(), which
# skips post_save, so listeners (notifications) hook this signal instead.
#
from django.dispatch import Signal

order_status_changed = Signal()
