DEFAULT_ENV = "dev"

# Naming convention components
SERVICE_NAME = "mongo"  # Service name prefix for every resource
LOGGER_SERVICE = "mongo-infra"

# Ports
MONGO_PORT = 27017
NFS_PORT = 2049

# Network
VPC_CIDR = "10.0.0.0/16"
CIDR_MASK = 24
MAX_AZS = 2
PUBLIC_SUBNET_NAME = "Public-Subnet"
PRIVATE_SUBNET_NAME = "Private-Subnet"
ANY_IPV4_CIDR = "0.0.0.0/0"

# Container
CONTAINER_IMAGE = "mongo"
CONTAINER_MEMORY_MIB = 128
CONTAINER_DATA_PATH = "/data/db"
DESIRED_COUNT = 2

# Fargate task sizing, the smallest combination that fits the container
TASK_CPU = 256
TASK_MEMORY_MIB = 512

EFS_TRANSIT_ENCRYPTION = "ENABLED"
