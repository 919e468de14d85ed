"""Provider dashboards, approval and platform statistics"""
