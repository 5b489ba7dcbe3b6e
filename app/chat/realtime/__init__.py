"""
Realtime core for live chat delivery.

Components:
    registry.PresenceRegistry: identity -> live connection handle
    lifecycle.ConnectionLifecycle: register/disconnect and presence fan-out
    fanout.MessageFanout: persist-then-deliver for direct and group messages
    signaling.CallSignaling: stateless relay of call negotiation events
    hub.RealtimeHub: wires the components for one process

Consumers and views reach the process-wide hub through hub.get_hub().
"""
