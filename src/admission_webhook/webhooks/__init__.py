"""
Admission webhooks for the admission webhook service.

This package provides the HTTPS listener, the admission review engine that
decodes and answers AdmissionReview envelopes, and the two policies behind
it: an image allow-list check for Pods (validate) and status annotation
injection for Deployments and Services (mutate).
"""
