from prometheus_client import Counter

DECORATION_COUNTER = Counter(
    'jmx_rbac_decorations_total',
    'Total number of MBean tree decoration passes',
    ['mode']
)

BATCH_REQUEST_COUNTER = Counter(
    'jmx_rbac_batch_requests_total',
    'Total number of batched canInvoke calls sent to Jolokia'
)

BATCH_FAILURE_COUNTER = Counter(
    'jmx_rbac_batch_failures_total',
    'Total number of batched canInvoke calls dropped after a transport failure'
)
