"""
Bookings app.

Holds the reservation side of the ledger:
- Booking: a reserved slot that is held until paid or released
- Appointment: legacy reservation model still referenced by old checkouts
- BookingPaymentIntent: the platform's own payment-intent record that the
  booking flow creates before redirecting to Stripe Checkout

Status changes go through django-fsm transitions so a booking can only
move forward (hold/pending -> paid/confirmed, or -> cancelled).

Usage:
    from bookings.models import Booking
    from bookings.states import BookingStatus

    booking = Booking.objects.get(id=booking_id, tenant_id=tenant_id)
    if can_proceed(booking.mark_paid):
        booking.mark_paid()
        booking.save()
"""
