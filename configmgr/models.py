from django.db import models


class SystemSetting(models.Model):
    """
    Runtime override for one of the MARKETPLACE policy knobs in settings.
    Read through configmgr.lookup.get_int_setting(); a row wins over settings.

    Keys in use:
      - ORDER_RATE_LIMIT              orders per requester per window
      - ORDER_RATE_WINDOW_SECONDS     length of that window
      - SLOT_RESERVATION_MAX_RETRIES  reservation attempts when the sub-slot is switched off mid-write
      - SWEEP_INTERVAL_MINUTES        status sweeper period in --loop mode
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)
    note = models.CharField(max_length=200, blank=True, help_text="Why this override exists.")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"{self.key}={self.value}"
