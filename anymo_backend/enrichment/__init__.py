"""
Enrichment Package: ML collaborators and the create-record pipeline
====================================================================

Contents
--------
- analyzers
    `RemoteTextAnalyzer` contract and `RetryingHttpAnalyzer` (httpx) for the
    `/suicide-risk` and `/sentiment` endpoints: fixed 3 attempts, 2 s apart.
- reformatter
    `StructuredReformatter`: single LangChain/OpenAI call with a strict JSON
    schema and a 15 s timeout, inserting `@@` speaker markers.
- policy
    Pure fallback/merge rules deciding `riskScore` and `memo`.
- pipeline
    `EnrichmentPipeline` (validate → analyze → merge → insert) and
    `process_chat` for the reformatting endpoint.
"""
