"""Operation documents for the remote RPC surface."""

from __future__ import annotations

LIST_RESOURCES = """
query ListAllResources($onlyFixedAssets: Boolean) {
  listAllResources(onlyFixedAssets: $onlyFixedAssets) {
    resource_id
    code
    name
    description
    brand
    model
    serial
    status
    location
    is_fixed_asset
    updated_at
  }
}
"""
LIST_RESOURCES_FIELD = "listAllResources"

CREATE_FIXED_ASSET_REPORT = """
mutation AddFixedAssetReport($input: FixedAssetReportInput!) {
  addFixedAssetReport(input: $input) {
    id
    title
    created_at
  }
}
"""
CREATE_FIXED_ASSET_REPORT_FIELD = "addFixedAssetReport"
