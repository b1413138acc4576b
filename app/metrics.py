from prometheus_client import Counter

# Deposit metrics
DEPOSITS_CREATED = Counter("salon_deposits_created_total", "Deposit payment intents created", ["service_id"])
PROVIDER_ERRORS = Counter("salon_provider_errors_total", "Payment provider failures", ["operation"])

# Webhook metrics
WEBHOOK_EVENTS = Counter("salon_webhook_events_total", "Verified webhook events received", ["kind"])
WEBHOOK_SIGNATURE_FAILURES = Counter("salon_webhook_signature_failures_total", "Webhook deliveries rejected on signature")

# Payment outcome metrics
PAYMENT_SUCCESS = Counter("salon_payments_success_total", "Deposits paid successfully")
PAYMENT_FAILURE = Counter("salon_payments_failure_total", "Deposit payment attempts that failed")
