"""Setup (provisioning) services.

This package contains the services that inspect and *provision* the AWS
resources behind a static website: the preflight reconciliation and the
step-by-step orchestration that follows the operator's confirmation.
"""
