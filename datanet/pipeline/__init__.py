"""Pipeline stages: protocols, domain inference and the contribution orchestrator.

DataNetworkPipeline is imported from datanet.pipeline.contribution; this
package stays import-light because the consent validator depends on
datanet.pipeline.protocols.
"""
