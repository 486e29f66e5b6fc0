# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Error types for devcluster."""


class DevClusterError(Exception):
    """Base exception for devcluster errors."""
    pass


class InputError(DevClusterError):
    """Invalid operator input, such as a non-numeric node count."""
    pass


class ProvisioningError(DevClusterError):
    """Cluster creation or deletion failed."""
    pass


class DegradedInitError(DevClusterError):
    """Namespace or development context setup failed; the cluster is still usable."""
    pass


class QueryError(DevClusterError):
    """A read-only status query against the cluster failed."""
    pass
